"""Concurrency tests for booking operations."""

import asyncio
from datetime import date

import pytest
import pytest_asyncio
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm.exc import StaleDataError
from sqlalchemy.pool import NullPool

from safari_api.core.database import Base
from safari_api.core.dependencies import CurrentUser
from safari_api.core.exceptions import CapacityExceededError, ConflictError, InvalidStateError
from safari_api.models import Booking, UserRole
from safari_api.schemas.booking import CancelBookingRequest, CreateBookingRequest, EmergencyContact, Participants
from safari_api.schemas.common import PriceInput
from safari_api.schemas.park import CreateParkRequest
from safari_api.schemas.tour import CreateTourRequest, StartDateInput
from safari_api.schemas.user import CreateUserRequest
from safari_api.services.booking_service import BookingService
from safari_api.services.idempotency_service import IdempotencyInProgressError, IdempotencyService
from safari_api.services.park_service import ParkService
from safari_api.services.tour_service import TourService
from safari_api.services.user_service import UserService

DAY = date(2031, 7, 1)


@pytest_asyncio.fixture
async def session_factory(tmp_path):
    """Sessions on a file-backed database so each task gets its own connection."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'safari.db'}", poolclass=NullPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


async def setup_tour(session_factory, max_participants: int, date_spots: int):
    """Create a tourist and a tour with one start date; return (tourist, tour_id)."""
    async with session_factory() as session:
        users = UserService(session)
        tourist_user = await users.create_user(
            CreateUserRequest(email="tourist@example.com", name="Tourist", phone="+255700000001")
        )
        agency_user = await users.create_user(
            CreateUserRequest(
                email="agency@example.com", name="Agency", phone="+255700000002",
                role=UserRole.TRAVEL_AGENCY, company_name="Safari Co",
            )
        )
        park = await ParkService(session).create_park(
            CreateParkRequest(
                name="Ruaha National Park",
                description="Remote and wild",
                location="Tanzania",
                latitude=-7.5,
                longitude=34.9,
                area_km2=20226,
                established_year=1964,
            )
        )
        tour = await TourService(session).create_tour(
            CreateTourRequest(
                park_id=park.id,
                title="Ruaha Walking Safari",
                description="On foot with an armed ranger",
                duration_days=2,
                price=PriceInput(amount=50000),
                max_participants=max_participants,
                start_dates=[StartDateInput(start_date=DAY, available_spots=date_spots)],
            ),
            CurrentUser(user_id=agency_user.id, role=UserRole.TRAVEL_AGENCY.value),
        )
        return CurrentUser(user_id=tourist_user.id, role=UserRole.TOURIST.value), tour.id


def one_spot(tour_id) -> CreateBookingRequest:
    return CreateBookingRequest(
        tour_id=tour_id,
        participants=Participants(adults=1),
        start_date=DAY,
        emergency_contact=EmergencyContact(name="Juma", phone="+255755555555", relationship="Brother"),
    )


@pytest.mark.asyncio
async def test_concurrent_bookings_no_overbooking(session_factory):
    """Test that concurrent booking requests don't cause overbooking."""
    tourist, tour_id = await setup_tour(session_factory, max_participants=5, date_spots=5)

    async def book():
        async with session_factory() as session:
            return await BookingService(session).create_booking(one_spot(tour_id), tourist)

    results = await asyncio.gather(*(book() for _ in range(10)), return_exceptions=True)

    succeeded = [r for r in results if not isinstance(r, Exception)]
    failed = [r for r in results if isinstance(r, Exception)]
    assert len(succeeded) == 5
    assert len(failed) == 5
    assert all(isinstance(e, ConflictError) for e in failed)
    assert all(isinstance(e, CapacityExceededError) for e in failed)

    async with session_factory() as session:
        tour = await TourService(session).get_tour_by_id_or_raise(tour_id)
        assert tour.current_participants == 5
        assert tour.find_start_date(DAY).available_spots == 0


@pytest.mark.asyncio
async def test_concurrent_cancellations_credit_once(session_factory):
    """Test two racing cancellations release the spots once."""
    tourist, tour_id = await setup_tour(session_factory, max_participants=5, date_spots=5)
    async with session_factory() as session:
        booking = await BookingService(session).create_booking(one_spot(tour_id), tourist)
        booking_id = booking.id

    async def cancel():
        async with session_factory() as session:
            return await BookingService(session).cancel_booking(CancelBookingRequest(booking_id=booking_id), tourist)

    results = await asyncio.gather(cancel(), cancel(), return_exceptions=True)

    succeeded = [r for r in results if not isinstance(r, Exception)]
    failed = [r for r in results if isinstance(r, Exception)]
    assert len(succeeded) == 1
    assert len(failed) == 1
    assert isinstance(failed[0], InvalidStateError)

    async with session_factory() as session:
        tour = await TourService(session).get_tour_by_id_or_raise(tour_id)
        assert tour.current_participants == 0
        assert tour.find_start_date(DAY).available_spots == 5


@pytest.mark.asyncio
async def test_concurrent_duplicates_with_one_key_book_once(session_factory):
    """Test two racing requests sharing an Idempotency-Key create a single booking."""
    tourist, tour_id = await setup_tour(session_factory, max_participants=5, date_spots=5)
    request = one_spot(tour_id)

    async def book_with_key():
        async with session_factory() as session:
            async def operation():
                booking = await BookingService(session).create_booking(request, tourist)
                await asyncio.sleep(0.05)
                return {"id": str(booking.id)}

            return await IdempotencyService(session).run(
                "same-key", "booking/create", tourist.user_id, request.model_dump(mode="json"), operation
            )

    results = await asyncio.gather(book_with_key(), book_with_key(), return_exceptions=True)

    assert all(not isinstance(r, Exception) or isinstance(r, IdempotencyInProgressError) for r in results)
    assert any(not isinstance(r, Exception) for r in results)

    async with session_factory() as session:
        assert await session.scalar(select(func.count(Booking.id))) == 1
        tour = await TourService(session).get_tour_by_id_or_raise(tour_id)
        assert tour.current_participants == 1
        assert tour.find_start_date(DAY).available_spots == 4


@pytest.mark.asyncio
async def test_stale_tour_write_is_rejected(session_factory):
    """Test the version column rejects a write based on a read another session has outdated."""
    _, tour_id = await setup_tour(session_factory, max_participants=5, date_spots=5)

    async with session_factory() as first, session_factory() as second:
        stale = await TourService(first).get_tour_by_id_or_raise(tour_id)
        fresh = await TourService(second).get_tour_by_id_or_raise(tour_id)

        fresh.current_participants = 2
        await second.commit()

        stale.current_participants = 1
        with pytest.raises(StaleDataError):
            await first.commit()

    async with session_factory() as session:
        tour = await TourService(session).get_tour_by_id_or_raise(tour_id)
        assert tour.current_participants == 2
        assert tour.version == 2


@pytest.mark.asyncio
async def test_booking_retries_after_interleaved_write(session_factory):
    """Test a booking whose tour changed between read and commit is retried from fresh rows."""
    tourist, tour_id = await setup_tour(session_factory, max_participants=5, date_spots=5)

    async with session_factory() as session:
        real_commit = session.commit
        interleaved = []

        async def commit_after_competing_write():
            if not interleaved:
                interleaved.append(1)
                async with session_factory() as other:
                    tour = await TourService(other).get_tour_by_id_or_raise(tour_id)
                    tour.title = "Ruaha Walking Safari (rescheduled)"
                    await other.commit()
            await real_commit()

        session.commit = commit_after_competing_write
        booking = await BookingService(session).create_booking(one_spot(tour_id), tourist)

    assert interleaved == [1]
    assert booking.total_participants == 1

    async with session_factory() as session:
        tour = await TourService(session).get_tour_by_id_or_raise(tour_id)
        assert tour.title == "Ruaha Walking Safari (rescheduled)"
        assert tour.current_participants == 1
        assert tour.find_start_date(DAY).available_spots == 4
        assert tour.version == 3
        assert await session.scalar(select(func.count(Booking.id))) == 1
