# Services module

from restaurant_core.services.restaurant_service import RestaurantDirectory
from restaurant_core.services.role_service import RoleCatalog
from restaurant_core.services.assignment_service import AssignmentStore, elect_primary_assignment
from restaurant_core.services.location_service import LocationStore

__all__ = [
    "RestaurantDirectory",
    "RoleCatalog",
    "AssignmentStore",
    "elect_primary_assignment",
    "LocationStore",
]
