"""User to location assignment model."""

from __future__ import annotations

import uuid
from typing import List, Optional

from sqlalchemy import JSON, Boolean, ForeignKey, Index, UniqueConstraint, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from restaurant_core.db.base import Base, TimestampMixin, UUIDMixin
from restaurant_core.models.validators import validate_list


class UserLocationAssignment(Base, UUIDMixin, TimestampMixin):
    """Grant of a role to a user at one location.

    A (user, location) pair appears at most once. At most one row per user
    carries ``is_primary_location`` (partial unique index).
    """

    __tablename__ = "user_location_assignments"
    __table_args__ = (
        UniqueConstraint("user_id", "location_id", name="uq_user_location_assignments_pair"),
        Index(
            "uq_user_location_assignments_one_primary",
            "user_id",
            unique=True,
            sqlite_where=text("is_primary_location = 1"),
            postgresql_where=text("is_primary_location"),
        ),
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    location_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("restaurant_locations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    role_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("roles.id"), nullable=True, index=True
    )
    is_primary_location: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    assigned_by: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, nullable=True)
    kds_stations: Mapped[Optional[List[str]]] = mapped_column(JSON, nullable=True)

    location: Mapped["Location"] = relationship("Location", back_populates="assignments")
    role: Mapped[Optional["Role"]] = relationship("Role")

    @validates("kds_stations")
    def _validate_stations(self, key, value):
        return validate_list(key, value)

    def __repr__(self) -> str:
        return f"<UserLocationAssignment user={self.user_id} location={self.location_id} primary={self.is_primary_location}>"
