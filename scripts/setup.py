#!/usr/bin/env python3
"""Setup script for the safari booking API."""

import asyncio
import logging
import sys
from datetime import timedelta
from pathlib import Path

# Add the server directory to the Python path
server_dir = Path(__file__).parent.parent / "server"
sys.path.insert(0, str(server_dir))

from alembic import command
from alembic.config import Config
from sqlalchemy import func, select

from safari_api.core.clock import utcnow
from safari_api.core.database import async_session_factory, close_db
from safari_api.models import DifficultyLevel, Lodge, LodgeType, Park, Tour, TourStartDate, User, UserRole

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def setup_database():
    """Bring the schema up to the latest migration."""
    logger.info("Setting up database...")

    alembic_cfg = Config(str(server_dir / "db" / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(server_dir / "db" / "alembic"))

    logger.info("Running database migrations...")
    command.upgrade(alembic_cfg, "head")
    logger.info("Database migrations completed")


async def create_sample_data():
    """Create a park, an agency with a scheduled tour, and a lodge."""
    logger.info("Creating sample data...")

    async with async_session_factory() as db:
        try:
            existing_parks = await db.execute(select(func.count()).select_from(Park))
            if existing_parks.scalar_one() > 0:
                logger.info("Sample data already exists, skipping...")
                return

            park = Park(
                name="Serengeti National Park",
                description="Endless plains famous for the annual wildebeest migration",
                location="Mara and Simiyu Regions, Tanzania",
                latitude=-2.3333,
                longitude=34.8333,
                area_km2=14750,
                established_year=1951,
                entry_fee_usd=70,
                best_time_to_visit="June to October",
            )
            agency = User(
                email="bookings@kilimanjaro-trails.example",
                name="Kilimanjaro Trails",
                role=UserRole.TRAVEL_AGENCY,
                company_name="Kilimanjaro Trails Ltd",
                is_verified=True,
            )
            lodge_owner = User(
                email="host@serengeti-camp.example",
                name="Serengeti Camp Hosts",
                role=UserRole.LODGE_OWNER,
            )
            db.add_all([park, agency, lodge_owner])
            await db.flush()

            tour = Tour(
                park_id=park.id,
                agency_id=agency.id,
                title="Great Migration Safari",
                description="Four days following the herds across the central Serengeti",
                duration_days=4,
                difficulty_level=DifficultyLevel.EASY,
                price_amount=185000,  # $1,850.00
                price_currency="USD",
                max_participants=12,
            )
            base_date = utcnow().date() + timedelta(days=30)
            tour.start_dates = [
                TourStartDate(start_date=base_date + timedelta(days=i * 7), available_spots=12)
                for i in range(5)
            ]
            db.add(tour)

            db.add(Lodge(
                park_id=park.id,
                owner_id=lodge_owner.id,
                name="Serengeti Tented Camp",
                location="Seronera, Central Serengeti",
                lodge_type=LodgeType.TENTED_CAMP,
                capacity=24,
                price_per_night_amount=45000,
                price_per_night_currency="USD",
            ))

            await db.commit()
            logger.info("Sample data created successfully!")

        except Exception as e:
            await db.rollback()
            logger.error(f"Failed to create sample data: {e}")
            raise

    await close_db()


def main():
    """Main setup function."""
    logger.info("Starting safari booking API setup...")

    # Migrations run their own event loop
    setup_database()

    asyncio.run(create_sample_data())

    logger.info("Setup completed successfully!")
    logger.info("You can now start the API server with: cd server && uvicorn safari_api.main:app --reload")


if __name__ == "__main__":
    main()
