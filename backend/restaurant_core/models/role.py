"""Role catalog model."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from sqlalchemy import Boolean, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, validates

from restaurant_core.db.base import Base, TimestampMixin, UUIDMixin
from restaurant_core.models.validators import in_range, one_of


class RoleScope(str, Enum):
    """Breadth of applicability of a role."""

    SYSTEM = "system"
    RESTAURANT = "restaurant"
    LOCATION = "location"


# Scopes a role may have to be granted at a specific location
ASSIGNABLE_SCOPES = (RoleScope.RESTAURANT.value, RoleScope.LOCATION.value)

MIN_ROLE_LEVEL = 1
MAX_ROLE_LEVEL = 5


class Role(Base, UUIDMixin, TimestampMixin):
    """Named permission descriptor. Never hard-deleted; see ``is_active``."""

    __tablename__ = "roles"

    name: Mapped[str] = mapped_column(String(50), unique=True, index=True, nullable=False)
    display_name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    level: Mapped[int] = mapped_column(Integer, default=MIN_ROLE_LEVEL, nullable=False)
    scope: Mapped[str] = mapped_column(String(20), default=RoleScope.LOCATION.value, nullable=False)
    is_admin_role: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    can_manage_users: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    can_manage_locations: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    @validates("name")
    def _normalize_name(self, key, value):
        return value.lower() if value is not None else value

    @validates("level")
    def _validate_level(self, key, value):
        return in_range(key, value, MIN_ROLE_LEVEL, MAX_ROLE_LEVEL)

    @validates("scope")
    def _validate_scope(self, key, value):
        if isinstance(value, RoleScope):
            value = value.value
        return one_of(key, value, [s.value for s in RoleScope])

    def __repr__(self) -> str:
        return f"<Role {self.name} scope={self.scope} level={self.level}>"
