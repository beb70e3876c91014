"""SQLAlchemy models."""

from restaurant_core.models.restaurant import Restaurant
from restaurant_core.models.user import User
from restaurant_core.models.role import Role, RoleScope
from restaurant_core.models.location import Location, LocationStatus
from restaurant_core.models.assignment import UserLocationAssignment

__all__ = [
    "Restaurant",
    "User",
    "Role",
    "RoleScope",
    "Location",
    "LocationStatus",
    "UserLocationAssignment",
]
