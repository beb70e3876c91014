"""Restaurant (tenant root) model."""

from __future__ import annotations

from typing import List

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from restaurant_core.db.base import Base, TimestampMixin, UUIDMixin


class Restaurant(Base, UUIDMixin, TimestampMixin):
    """Tenant that owns one or more locations."""

    __tablename__ = "restaurants"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    url_name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    status: Mapped[str] = mapped_column(String(20), default="active", nullable=False)

    locations: Mapped[List["Location"]] = relationship(
        "Location",
        back_populates="restaurant",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

