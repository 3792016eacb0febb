"""
Capacity ledger operations over a tour and its start dates.

These functions are pure with respect to the database: they read and mutate
the in-memory ORM instances only. Callers are expected to hold the tour's
critical section and to persist the change in the same transaction as the
booking it belongs to.
"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Union

from ..core.exceptions import CapacityExceededError, DateUnavailableError, ValidationError
from ..models.tour import Tour, TourStartDate


@dataclass(frozen=True)
class LedgerChange:
    """Before/after snapshot of one capacity mutation."""

    participants_before: int
    participants_after: int
    spots_before: Optional[int]
    spots_after: Optional[int]

    @property
    def delta(self) -> int:
        return self.participants_before - self.participants_after


def as_calendar_day(value: Union[date, datetime]) -> date:
    """Normalize a date or datetime to its calendar day."""
    if isinstance(value, datetime):
        return value.date()
    return value


def spots_remaining(tour: Tour) -> int:
    return tour.max_participants - tour.current_participants


def is_fully_booked(tour: Tour) -> bool:
    return tour.current_participants >= tour.max_participants


def is_available_on_date(tour: Tour, day: Union[date, datetime]) -> bool:
    """True if the tour is scheduled on ``day`` and that date still has spots."""
    entry = tour.find_start_date(as_calendar_day(day))
    return entry is not None and entry.available_spots > 0


def find_bookable_date(tour: Tour, day: Union[date, datetime]) -> TourStartDate:
    """
    Return the schedule entry for ``day``.

    A sold-out date on a fully booked tour is returned as is, so that
    ``charge`` reports the exhausted aggregate capacity instead.

    Raises:
        DateUnavailableError: If the tour is not scheduled on that day, or the
            date has no spots left while the tour still has room
    """
    calendar_day = as_calendar_day(day)
    entry = tour.find_start_date(calendar_day)
    if entry is None or (entry.available_spots <= 0 and not is_fully_booked(tour)):
        raise DateUnavailableError(str(tour.id), calendar_day.isoformat())
    return entry


def charge(tour: Tour, entry: TourStartDate, requested: int) -> LedgerChange:
    """
    Consume ``requested`` spots from the tour and from ``entry``.

    Both the aggregate and the per-date ceilings are checked before anything
    is mutated.

    Raises:
        ValidationError: If ``requested`` is not positive
        CapacityExceededError: If either ceiling would be exceeded
    """
    if requested <= 0:
        raise ValidationError(detail="At least one participant is required")

    remaining = spots_remaining(tour)
    if requested > remaining or requested > entry.available_spots:
        raise CapacityExceededError(
            tour_id=str(tour.id),
            requested=requested,
            spots_remaining=remaining,
            date_spots_remaining=entry.available_spots,
        )

    change = LedgerChange(
        participants_before=tour.current_participants,
        participants_after=tour.current_participants + requested,
        spots_before=entry.available_spots,
        spots_after=entry.available_spots - requested,
    )
    tour.current_participants = change.participants_after
    entry.available_spots = change.spots_after
    return change


def credit(tour: Tour, entry: Optional[TourStartDate], released: int) -> LedgerChange:
    """
    Return ``released`` spots to the tour and, when it still exists, to ``entry``.

    The aggregate counter is floored at zero and the per-date counter capped
    at ``max_participants``.
    """
    participants_after = max(0, tour.current_participants - released)
    spots_before = entry.available_spots if entry is not None else None
    spots_after = None
    if entry is not None:
        spots_after = min(tour.max_participants, entry.available_spots + released)

    change = LedgerChange(
        participants_before=tour.current_participants,
        participants_after=participants_after,
        spots_before=spots_before,
        spots_after=spots_after,
    )
    tour.current_participants = participants_after
    if entry is not None:
        entry.available_spots = spots_after
    return change
