"""
Operation surface consumed by controllers and other collaborators.

Thin functions over the stores, each taking the caller's session first.
Failures are domain exceptions from ``restaurant_core.core.exceptions``;
``restaurant_core.core.http_errors`` maps them to responses.
"""

import uuid
from typing import Any, List, Mapping, Optional, Union

from sqlalchemy.orm import Session

from restaurant_core.models.assignment import UserLocationAssignment
from restaurant_core.models.location import Location
from restaurant_core.schemas.location import LocationCreate, LocationUpdate
from restaurant_core.services.assignment_service import AssignmentStore
from restaurant_core.services.location_service import LocationStore


# ========== LOCATIONS ==========

def create_location(
    db: Session, restaurant_id: uuid.UUID, data: Union[LocationCreate, Mapping[str, Any]]
) -> Location:
    return LocationStore(db).create(restaurant_id, data)


def update_location(
    db: Session, location_id: uuid.UUID, data: Union[LocationUpdate, Mapping[str, Any]]
) -> Location:
    return LocationStore(db).update(location_id, data)


def set_primary_location(db: Session, location_id: uuid.UUID) -> Location:
    return LocationStore(db).set_primary(location_id)


def delete_location(db: Session, location_id: uuid.UUID) -> bool:
    return LocationStore(db).delete(location_id)


def list_locations(db: Session, restaurant_id: uuid.UUID, status: Optional[str] = None) -> List[Location]:
    """Locations of a restaurant, primary first, optionally filtered by status."""
    return LocationStore(db).get_by_restaurant(restaurant_id, status=status)


# ========== ASSIGNMENTS ==========

def assign_user_to_location(
    db: Session,
    user_id: uuid.UUID,
    location_id: uuid.UUID,
    role_id: Optional[uuid.UUID] = None,
    *,
    is_primary_location: bool = False,
    assigned_by: Optional[uuid.UUID] = None,
    kds_stations: Optional[List[str]] = None,
) -> UserLocationAssignment:
    return AssignmentStore(db).assign(
        user_id,
        location_id,
        role_id,
        is_primary_location=is_primary_location,
        assigned_by=assigned_by,
        kds_stations=kds_stations,
    )


def set_user_primary_location(db: Session, user_id: uuid.UUID, location_id: uuid.UUID) -> bool:
    """False when the user has no assignment at ``location_id``."""
    return AssignmentStore(db).set_primary_location(user_id, location_id)


def remove_user_from_location(db: Session, user_id: uuid.UUID, location_id: uuid.UUID) -> bool:
    return AssignmentStore(db).remove(user_id, location_id)


def user_has_location_access(db: Session, user_id: uuid.UUID, location_id: uuid.UUID) -> bool:
    return AssignmentStore(db).user_has_location_access(user_id, location_id)
