"""Park model definition."""

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import Boolean, CheckConstraint, DateTime, Float, Integer, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from ..core.clock import utcnow
from ..core.database import Base


class Park(Base):
    """National park or reserve that tours and lodges belong to."""

    __tablename__ = "parks"

    # Primary key
    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    # Park information
    name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    location: Mapped[str] = mapped_column(String(200), nullable=False)
    latitude: Mapped[float] = mapped_column(Float, nullable=False)
    longitude: Mapped[float] = mapped_column(Float, nullable=False)
    area_km2: Mapped[float] = mapped_column(Float, nullable=False)
    established_year: Mapped[int] = mapped_column(Integer, nullable=False)
    entry_fee_usd: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    best_time_to_visit: Mapped[str | None] = mapped_column(String(200), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    # Aggregated review rating
    rating_average: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    rating_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Optimistic concurrency for rating updates
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
        server_default=func.now()
    )

    __table_args__ = (
        CheckConstraint("latitude >= -90 AND latitude <= 90", name="ck_park_latitude_range"),
        CheckConstraint("longitude >= -180 AND longitude <= 180", name="ck_park_longitude_range"),
        CheckConstraint("area_km2 >= 0", name="ck_park_area_non_negative"),
        CheckConstraint("established_year >= 1800", name="ck_park_established_year_min"),
        CheckConstraint("entry_fee_usd >= 0", name="ck_park_entry_fee_non_negative"),
        CheckConstraint("rating_average >= 0 AND rating_average <= 5", name="ck_park_rating_average_range"),
        CheckConstraint("rating_count >= 0", name="ck_park_rating_count_non_negative"),
    )

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        return f"<Park(id={self.id}, name='{self.name}', rating={self.rating_average}/{self.rating_count})>"
