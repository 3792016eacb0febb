"""Property-based tests for booking system invariants."""

from datetime import date
from uuid import uuid4

import pytest
from hypothesis import given
from hypothesis import strategies as st

from safari_api.core.exceptions import CapacityExceededError
from safari_api.models import Tour, TourStartDate
from safari_api.services import capacity_ledger
from safari_api.services.rating import update_rating

DAY = date(2031, 7, 1)

# Strategies for generating test data
party_sizes = st.integers(min_value=1, max_value=10)
max_participants_values = st.integers(min_value=1, max_value=50)
scores = st.integers(min_value=1, max_value=5)


def build_tour(max_participants: int, date_spots: int) -> Tour:
    tour = Tour(id=uuid4(), max_participants=max_participants, current_participants=0)
    tour.start_dates = [TourStartDate(start_date=DAY, available_spots=date_spots)]
    return tour


@given(
    max_participants=max_participants_values,
    spot_ratio=st.floats(min_value=0.0, max_value=1.0),
    requests=st.lists(party_sizes, min_size=1, max_size=30),
)
def test_capacity_never_exceeded(max_participants, spot_ratio, requests):
    """Test the counters stay within bounds whatever parties arrive."""
    date_spots = round(max_participants * spot_ratio)
    tour = build_tour(max_participants, date_spots)
    entry = tour.start_dates[0]
    accepted = 0

    for size in requests:
        try:
            capacity_ledger.charge(tour, entry, size)
            accepted += size
        except CapacityExceededError:
            pass

        assert 0 <= tour.current_participants <= tour.max_participants
        assert entry.available_spots >= 0

    assert tour.current_participants == accepted
    assert entry.available_spots == date_spots - accepted
    assert accepted <= min(max_participants, date_spots)


@given(
    max_participants=max_participants_values,
    requests=st.lists(party_sizes, min_size=1, max_size=30),
)
def test_charge_then_credit_restores_state(max_participants, requests):
    """Test cancelling every accepted booking returns the tour to empty."""
    tour = build_tour(max_participants, max_participants)
    entry = tour.start_dates[0]
    accepted = []

    for size in requests:
        try:
            capacity_ledger.charge(tour, entry, size)
            accepted.append(size)
        except CapacityExceededError:
            pass

    for size in reversed(accepted):
        capacity_ledger.credit(tour, entry, size)

    assert tour.current_participants == 0
    assert entry.available_spots == max_participants
    assert not capacity_ledger.is_fully_booked(tour)


@given(max_participants=max_participants_values, overshoot=party_sizes)
def test_rejected_charge_leaves_counters_untouched(max_participants, overshoot):
    tour = build_tour(max_participants, max_participants)
    entry = tour.start_dates[0]

    with pytest.raises(CapacityExceededError):
        capacity_ledger.charge(tour, entry, max_participants + overshoot)

    assert tour.current_participants == 0
    assert entry.available_spots == max_participants


@given(values=st.lists(scores, min_size=1, max_size=40))
def test_rating_average_is_order_independent(values):
    """Test the running mean equals the arithmetic mean in any order."""
    forward = Tour(rating_average=0.0, rating_count=0)
    backward = Tour(rating_average=0.0, rating_count=0)

    for score in values:
        update_rating(forward, score)
    for score in reversed(values):
        update_rating(backward, score)

    expected = sum(values) / len(values)
    assert forward.rating_count == backward.rating_count == len(values)
    assert forward.rating_average == pytest.approx(expected)
    assert backward.rating_average == pytest.approx(expected)
    assert 1 - 1e-9 <= forward.rating_average <= 5 + 1e-9
