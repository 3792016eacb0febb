"""Unit tests for the capacity ledger functions."""

from datetime import date, datetime
from uuid import uuid4

import pytest

from safari_api.core.exceptions import CapacityExceededError, DateUnavailableError, ValidationError
from safari_api.models import Tour, TourStartDate
from safari_api.services import capacity_ledger

DAY = date(2031, 7, 1)


def build_tour(max_participants=5, current_participants=0, schedule=((DAY, 5),)):
    tour = Tour(
        id=uuid4(),
        max_participants=max_participants,
        current_participants=current_participants,
    )
    tour.start_dates = [TourStartDate(start_date=day, available_spots=spots) for day, spots in schedule]
    return tour


def test_spots_remaining_and_fully_booked():
    tour = build_tour(max_participants=5, current_participants=3)
    assert capacity_ledger.spots_remaining(tour) == 2
    assert not capacity_ledger.is_fully_booked(tour)

    tour.current_participants = 5
    assert capacity_ledger.spots_remaining(tour) == 0
    assert capacity_ledger.is_fully_booked(tour)


def test_is_available_on_date_ignores_time_of_day():
    tour = build_tour()
    assert capacity_ledger.is_available_on_date(tour, datetime(2031, 7, 1, 23, 59))
    assert not capacity_ledger.is_available_on_date(tour, date(2031, 7, 2))

    tour.start_dates[0].available_spots = 0
    assert not capacity_ledger.is_available_on_date(tour, DAY)


def test_find_bookable_date():
    tour = build_tour(schedule=((DAY, 5), (date(2031, 8, 1), 0)))

    assert capacity_ledger.find_bookable_date(tour, DAY).start_date == DAY

    with pytest.raises(DateUnavailableError):
        capacity_ledger.find_bookable_date(tour, date(2031, 9, 1))

    # Sold out while the tour still has room
    with pytest.raises(DateUnavailableError):
        capacity_ledger.find_bookable_date(tour, date(2031, 8, 1))


def test_find_bookable_date_defers_to_capacity_when_fully_booked():
    tour = build_tour(max_participants=2, current_participants=2, schedule=((DAY, 0),))

    entry = capacity_ledger.find_bookable_date(tour, DAY)

    with pytest.raises(CapacityExceededError):
        capacity_ledger.charge(tour, entry, 1)


def test_charge_updates_both_counters():
    tour = build_tour(max_participants=5, schedule=((DAY, 4),))
    entry = tour.start_dates[0]

    change = capacity_ledger.charge(tour, entry, 3)

    assert (tour.current_participants, entry.available_spots) == (3, 1)
    assert change.participants_before == 0
    assert change.participants_after == 3
    assert (change.spots_before, change.spots_after) == (4, 1)
    assert change.delta == -3


@pytest.mark.parametrize("requested, current, spots", [
    (3, 3, 5),  # aggregate ceiling
    (3, 0, 2),  # per-date ceiling
])
def test_charge_rejects_without_mutation(requested, current, spots):
    tour = build_tour(max_participants=5, current_participants=current, schedule=((DAY, spots),))
    entry = tour.start_dates[0]

    with pytest.raises(CapacityExceededError):
        capacity_ledger.charge(tour, entry, requested)

    assert (tour.current_participants, entry.available_spots) == (current, spots)


def test_charge_rejects_non_positive_request():
    tour = build_tour()
    with pytest.raises(ValidationError):
        capacity_ledger.charge(tour, tour.start_dates[0], 0)


def test_credit_restores_counters():
    tour = build_tour(max_participants=5, current_participants=3, schedule=((DAY, 2),))
    entry = tour.start_dates[0]

    change = capacity_ledger.credit(tour, entry, 3)

    assert (tour.current_participants, entry.available_spots) == (0, 5)
    assert change.delta == 3


def test_credit_floors_and_caps():
    tour = build_tour(max_participants=5, current_participants=1, schedule=((DAY, 4),))
    entry = tour.start_dates[0]

    capacity_ledger.credit(tour, entry, 3)

    assert tour.current_participants == 0
    assert entry.available_spots == 5


def test_credit_without_schedule_entry():
    tour = build_tour(max_participants=5, current_participants=4)

    change = capacity_ledger.credit(tour, None, 2)

    assert tour.current_participants == 2
    assert change.spots_before is None
    assert change.spots_after is None
    assert tour.start_dates[0].available_spots == 5
