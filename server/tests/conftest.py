"""Test configuration and fixtures."""

import os

# Settings are read at import time; point the application at SQLite before it loads
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "test")

from datetime import date, datetime, timedelta, timezone
from typing import Optional
from uuid import uuid4

import jwt
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from safari_api.core.config import settings
from safari_api.core.database import Base
from safari_api.core.dependencies import CurrentUser, get_db
from safari_api.models import *  # noqa: F403 - Import all models
from safari_api.models import UserRole
from safari_api.schemas.booking import CreateBookingRequest, EmergencyContact, Participants
from safari_api.schemas.common import PriceInput
from safari_api.schemas.park import CreateParkRequest
from safari_api.schemas.tour import CreateTourRequest, StartDateInput
from safari_api.schemas.user import CreateUserRequest
from safari_api.services.park_service import ParkService
from safari_api.services.tour_service import TourService
from safari_api.services.user_service import UserService

# Test database URL (in-memory SQLite for speed)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# Fixed calendar days keep the schedule independent of the wall clock
FIRST_DAY = date(2031, 7, 1)
SECOND_DAY = date(2031, 7, 15)


@pytest_asyncio.fixture(scope="function")
async def test_engine():
    """Create a test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    # Create tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    # Drop tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def test_session(test_engine):
    """Create a test database session."""
    async_session = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    async with async_session() as session:
        yield session


@pytest_asyncio.fixture(scope="function")
async def test_app(test_session):
    """Create the application with its database dependency bound to the test session."""
    from safari_api.main import create_app

    app = create_app()

    # Override database dependency
    async def override_get_db():
        yield test_session

    app.dependency_overrides[get_db] = override_get_db

    yield app

    # Clean up
    app.dependency_overrides.clear()


@pytest_asyncio.fixture(scope="function")
async def test_client(test_app):
    """Create a test HTTP client."""
    transport = ASGITransport(app=test_app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def auth_headers():
    """Build Bearer headers for a user id and role."""

    def _headers(user_id, role: str, expires_in: int = 3600) -> dict:
        token = jwt.encode(
            {
                "sub": str(user_id),
                "role": role,
                "exp": int((datetime.now(timezone.utc) + timedelta(seconds=expires_in)).timestamp()),
            },
            settings.bearer_token_secret,
            algorithm="HS256",
        )
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def admin():
    """Admin identity; admins are trusted without a user row."""
    return CurrentUser(user_id=uuid4(), role=UserRole.ADMIN.value)


@pytest.fixture
def make_user(test_session):
    """Create an active user with the given role."""

    async def _make_user(role: UserRole = UserRole.TOURIST, name: Optional[str] = None):
        suffix = uuid4().hex[:8]
        user = await UserService(test_session).create_user(
            CreateUserRequest(
                email=f"{role.value.replace(' ', '.').lower()}.{suffix}@example.com",
                name=name or f"{role.value} {suffix}",
                phone="+255700000000",
                role=role,
                company_name="Safari Co" if role == UserRole.TRAVEL_AGENCY else None,
            )
        )
        return user

    return _make_user


def as_current_user(user) -> CurrentUser:
    return CurrentUser(user_id=user.id, role=UserRole(user.role).value, email=user.email)


@pytest_asyncio.fixture
async def tourist_user(make_user):
    return await make_user(UserRole.TOURIST)


@pytest_asyncio.fixture
async def agency_user(make_user):
    return await make_user(UserRole.TRAVEL_AGENCY)


@pytest.fixture
def tourist(tourist_user):
    return as_current_user(tourist_user)


@pytest.fixture
def agency(agency_user):
    return as_current_user(agency_user)


@pytest_asyncio.fixture
async def park(test_session):
    """An active park."""
    return await ParkService(test_session).create_park(
        CreateParkRequest(
            name="Serengeti National Park",
            description="Endless plains and the great migration",
            location="Tanzania",
            latitude=-2.33,
            longitude=34.83,
            area_km2=14750,
            established_year=1951,
            entry_fee_usd=70,
        )
    )


@pytest.fixture
def make_tour(test_session, park, agency):
    """Create a tour owned by ``agency`` with the given schedule."""

    async def _make_tour(
        max_participants: int = 10,
        start_dates: Optional[list] = None,
        price_amount: int = 150000,
        duration_days: int = 3,
    ):
        if start_dates is None:
            start_dates = [(FIRST_DAY, None)]
        return await TourService(test_session).create_tour(
            CreateTourRequest(
                park_id=park.id,
                title="Migration Safari",
                description="Follow the herds across the plains",
                duration_days=duration_days,
                price=PriceInput(amount=price_amount, currency="USD"),
                max_participants=max_participants,
                start_dates=[
                    StartDateInput(start_date=day, available_spots=spots) for day, spots in start_dates
                ],
            ),
            agency,
        )

    return _make_tour


@pytest.fixture
def booking_request():
    """Build a booking request for a tour and party."""

    def _booking_request(tour_id, adults: int = 1, children: int = 0, infants: int = 0, start_date=FIRST_DAY):
        return CreateBookingRequest(
            tour_id=tour_id,
            participants=Participants(adults=adults, children=children, infants=infants),
            start_date=start_date,
            emergency_contact=EmergencyContact(name="Asha Mollel", phone="+255711111111", relationship="Sister"),
        )

    return _booking_request
