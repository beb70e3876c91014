"""Restaurant location model."""

from __future__ import annotations

import uuid
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, Boolean, ForeignKey, Index, String, UniqueConstraint, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from restaurant_core.db.base import Base, TimestampMixin, UUIDMixin
from restaurant_core.models.validators import validate_dict, validate_list


class LocationStatus:
    ACTIVE = "active"
    INACTIVE = "inactive"

    ALL = (ACTIVE, INACTIVE)


class Location(Base, UUIDMixin, TimestampMixin):
    """Physical location of a restaurant.

    Exactly one location per restaurant carries ``is_primary``; the partial
    unique index rejects a second one at the database level, the stores keep
    the "at least one" half.
    """

    __tablename__ = "restaurant_locations"
    __table_args__ = (
        UniqueConstraint("restaurant_id", "url_name", name="uq_restaurant_locations_url_name"),
        Index(
            "uq_restaurant_locations_one_primary",
            "restaurant_id",
            unique=True,
            sqlite_where=text("is_primary = 1"),
            postgresql_where=text("is_primary"),
        ),
    )

    restaurant_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("restaurants.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    url_name: Mapped[str] = mapped_column(String(100), nullable=False)

    # Contact
    phone: Mapped[Optional[str]] = mapped_column(String(15), nullable=True)
    whatsapp: Mapped[Optional[str]] = mapped_column(String(15), nullable=True)

    # Address
    address_zip_code: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    address_street: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    address_street_number: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    address_complement: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    address_city: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    address_state: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    # Settings
    operating_hours: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False)
    selected_features: Mapped[List[str]] = mapped_column(JSON, default=list, nullable=False)

    status: Mapped[str] = mapped_column(String(20), default=LocationStatus.ACTIVE, nullable=False)
    is_primary: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Relationships
    restaurant: Mapped["Restaurant"] = relationship("Restaurant", back_populates="locations")
    assignments: Mapped[List["UserLocationAssignment"]] = relationship(
        "UserLocationAssignment",
        back_populates="location",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @validates("url_name")
    def _normalize_url_name(self, key, value):
        return value.lower() if value is not None else value

    @validates("operating_hours")
    def _validate_operating_hours(self, key, value):
        return validate_dict(key, value)

    @validates("selected_features")
    def _validate_features(self, key, value):
        return validate_list(key, value)

    def __repr__(self) -> str:
        return f"<Location {self.url_name} primary={self.is_primary}>"


# Forward references
from restaurant_core.models.restaurant import Restaurant  # noqa: E402
from restaurant_core.models.assignment import UserLocationAssignment  # noqa: E402
