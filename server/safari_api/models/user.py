"""User model definition."""

from datetime import datetime
from enum import Enum
from uuid import UUID, uuid4

from sqlalchemy import Boolean, CheckConstraint, DateTime, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from ..core.clock import utcnow
from ..core.database import Base


class UserRole(str, Enum):
    """Marketplace roles."""
    TOURIST = "Tourist"
    TRAVEL_AGENCY = "Travel Agency"
    LODGE_OWNER = "Lodge Owner"
    RESTAURANT_OWNER = "Restaurant Owner"
    TRAVEL_GEAR_SELLER = "Travel Gear Seller"
    PHOTOGRAPHER = "Photographer"
    TOUR_GUIDE = "Tour Guide"
    ADMIN = "Admin"


class User(Base):
    """Marketplace account. Credentials are managed by the identity provider."""

    __tablename__ = "users"

    # Primary key
    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    # Profile
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(32), nullable=True)
    role: Mapped[UserRole] = mapped_column(
        String(32),
        nullable=False,
        default=UserRole.TOURIST,
        index=True
    )
    company_name: Mapped[str | None] = mapped_column(String(200), nullable=True)

    # Account state
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

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
        CheckConstraint("length(email) > 0", name="ck_user_email_not_empty"),
        CheckConstraint("length(name) > 0", name="ck_user_name_not_empty"),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}', role='{self.role}')>"
