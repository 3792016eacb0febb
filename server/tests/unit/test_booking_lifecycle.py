"""Unit tests for the booking status lifecycle and model hooks."""

from datetime import date

import pytest

from safari_api.models import Booking, BookingStatus
from safari_api.models.booking import ALLOWED_TRANSITIONS, can_transition

FIRST_DAY = date(2031, 7, 1)


@pytest.mark.parametrize("current, target", [
    ("pending", "confirmed"),
    ("pending", "cancelled"),
    ("confirmed", "cancelled"),
    ("confirmed", "completed"),
    ("cancelled", "refunded"),
])
def test_allowed_transitions(current, target):
    assert can_transition(current, target)


@pytest.mark.parametrize("current, target", [
    ("pending", "completed"),
    ("pending", "refunded"),
    ("confirmed", "pending"),
    ("cancelled", "pending"),
    ("cancelled", "confirmed"),
    ("completed", "cancelled"),
    ("refunded", "cancelled"),
])
def test_rejected_transitions(current, target):
    assert not can_transition(current, target)


def test_terminal_states():
    """Completed and refunded bookings never move again."""
    assert ALLOWED_TRANSITIONS[BookingStatus.COMPLETED] == frozenset()
    assert ALLOWED_TRANSITIONS[BookingStatus.REFUNDED] == frozenset()
    assert all(BookingStatus.PENDING not in targets for targets in ALLOWED_TRANSITIONS.values())


def test_unknown_status_raises():
    with pytest.raises(ValueError):
        can_transition("pending", "archived")


@pytest.mark.asyncio
async def test_total_participants_recomputed(test_session, make_tour, tourist_user):
    """Test the party total is derived from its parts on insert and update."""
    tour = await make_tour()
    booking = Booking(
        user_id=tourist_user.id,
        tour_id=tour.id,
        adults=2,
        children=1,
        infants=1,
        total_participants=0,
        start_date=FIRST_DAY,
        end_date=date(2031, 7, 3),
        total_price_amount=450000,
        emergency_contact_name="Asha Mollel",
        emergency_contact_phone="+255711111111",
        emergency_contact_relationship="Sister",
    )
    test_session.add(booking)
    await test_session.commit()

    assert booking.total_participants == 4
    assert booking.status == BookingStatus.PENDING
    assert booking.version == 1
    assert booking.booking_reference == f"NAP{booking.id.hex[-8:].upper()}"

    booking.children = 0
    await test_session.commit()

    assert booking.total_participants == 3
    assert booking.version == 2
