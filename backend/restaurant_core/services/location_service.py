"""
Location Store

Owns the restaurant location lifecycle and keeps exactly one location per
restaurant marked primary:

- the first location of a restaurant is created primary;
- making a location primary clears every sibling first, in the same
  transaction, under row locks on the sibling set;
- deleting (or demoting) the primary location hands primacy to the
  oldest remaining sibling, active ones first;
- the last location of a restaurant can never be deleted.

Nothing about primary state is cached; every decision re-reads the store
inside the transaction that acts on it.
"""

import logging
import uuid
from typing import Any, List, Mapping, Optional, Union

from sqlalchemy import case, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from restaurant_core.core.exceptions import (
    ConflictError,
    InvalidOperationError,
    NotFoundError,
    ValidationError,
)
from restaurant_core.core.logging_config import get_logger
from restaurant_core.core.validators import parse_input, parse_uuid
from restaurant_core.db.transaction import lock_rows, run_atomic, violates_unique
from restaurant_core.models.location import Location, LocationStatus
from restaurant_core.schemas.location import LocationCreate, LocationStats, LocationUpdate
from restaurant_core.services.assignment_service import elect_primary_assignment, users_with_primary_at
from restaurant_core.services.restaurant_service import RestaurantDirectory

SLUG_CONFLICT = "Location URL name already exists for this restaurant"


def _lost_primary_race(exc: IntegrityError) -> bool:
    return violates_unique(exc, "uq_restaurant_locations_one_primary", "restaurant_locations.restaurant_id")


class LocationStore:
    """Location CRUD plus the primary-location invariant."""

    def __init__(
        self,
        db: Session,
        logger: Optional[logging.Logger] = None,
        restaurants: Optional[RestaurantDirectory] = None,
    ):
        self.db = db
        self.logger = get_logger(__name__, logger)
        self.restaurants = restaurants or RestaurantDirectory(db)

    # ========== READS ==========

    def get(self, location_id: uuid.UUID) -> Optional[Location]:
        location_id = parse_uuid(location_id, "location_id")
        return self.db.query(Location).filter(Location.id == location_id).first()

    def get_by_restaurant(self, restaurant_id: uuid.UUID, status: Optional[str] = None) -> List[Location]:
        """List a restaurant's locations, primary first, then by creation order."""
        restaurant_id = parse_uuid(restaurant_id, "restaurant_id")
        query =self.db.query(Location).filter(Location.restaurant_id == restaurant_id)
        if status is not None:
            if status not in LocationStatus.ALL:
                raise ValidationError(f"Invalid status. Use: {list(LocationStatus.ALL)}")
            query = query.filter(Location.status == status)
        return query.order_by(Location.is_primary.desc(), Location.created_at.asc(), Location.id.asc()).all()

    def get_primary(self, restaurant_id: uuid.UUID) -> Optional[Location]:
        restaurant_id = parse_uuid(restaurant_id, "restaurant_id")
        return (
            self.db.query(Location)
            .filter(Location.restaurant_id == restaurant_id, Location.is_primary == True)
            .first()
        )

    def find_by_slug(self, restaurant_id: uuid.UUID, url_name: str) -> Optional[Location]:
        """Find a location by URL name within a restaurant (case-insensitive)."""
        restaurant_id = parse_uuid(restaurant_id, "restaurant_id")
        return (
            self.db.query(Location)
            .filter(Location.restaurant_id == restaurant_id, Location.url_name == url_name.strip().lower())
            .first()
        )

    def get_stats(self, restaurant_id: uuid.UUID) -> LocationStats:
        """Location counts by status and primary flag for one restaurant."""
        restaurant_id = parse_uuid(restaurant_id, "restaurant_id")
        row = (
            self.db.query(
                func.count(Location.id),
                func.sum(case((Location.status == LocationStatus.ACTIVE, 1), else_=0)),
                func.sum(case((Location.status == LocationStatus.INACTIVE, 1), else_=0)),
                func.sum(case((Location.is_primary == True, 1), else_=0)),
            )
            .filter(Location.restaurant_id == restaurant_id)
            .one()
        )
        total, active, inactive, primary = row
        return LocationStats(
            total_locations=total or 0,
            active_locations=active or 0,
            inactive_locations=inactive or 0,
            primary_locations=primary or 0,
        )

    # ========== MUTATIONS ==========

    def create(self, restaurant_id: uuid.UUID, data: Union[LocationCreate, Mapping[str, Any]]) -> Location:
        """Create a location for an existing restaurant.

        Raises:
            ValidationError: malformed input.
            NotFoundError: the restaurant does not exist.
            ConflictError: the URL name is taken within the restaurant.
        """
        restaurant_id = parse_uuid(restaurant_id, "restaurant_id")
        payload = parse_input(LocationCreate, data, "Invalid location data")
        values = payload.model_dump()

        def _create() -> Location:
            if not self.restaurants.exists(restaurant_id):
                raise NotFoundError("Restaurant not found")
            if self.find_by_slug(restaurant_id, payload.url_name):
                raise ConflictError(SLUG_CONFLICT)

            siblings = self._lock_siblings(restaurant_id)
            make_primary = values["is_primary"] or not siblings
            if make_primary and siblings:
                self._clear_primary(restaurant_id)

            location = Location(restaurant_id=restaurant_id, **{**values, "is_primary": make_primary})
            self.db.add(location)
            self.db.flush()
            return location

        location = run_atomic(
            self.db, _create, name="create_location",
            conflict_message=SLUG_CONFLICT, retry_on=_lost_primary_race, log=self.logger,
        )
        self.logger.info(
            f"Location '{location.name}' created",
            extra={"location_id": str(location.id), "restaurant_id": str(restaurant_id), "is_primary": location.is_primary},
        )
        return location

    def update(self, location_id: uuid.UUID, data: Union[LocationUpdate, Mapping[str, Any]]) -> Location:
        """Apply a partial update.

        ``is_primary=True`` clears the siblings first. ``is_primary=False`` on
        the primary passes primacy to the successor; the only location of a
        restaurant stays primary.

        Raises:
            ValidationError: malformed input or nothing to update.
            NotFoundError: the location does not exist (or vanished mid-update).
            ConflictError: the new URL name is taken within the restaurant.
        """
        location_id = parse_uuid(location_id, "location_id")
        payload = parse_input(LocationUpdate, data, "Invalid location update")
        changes = payload.changes()
        if not changes:
            raise ValidationError("No valid fields to update")

        def _update() -> Location:
            location = self.get(location_id)
            if location is None:
                raise NotFoundError("Location not found")
            restaurant_id = location.restaurant_id

            if "url_name" in changes:
                existing = self.find_by_slug(restaurant_id, changes["url_name"])
                if existing is not None and existing.id != location.id:
                    raise ConflictError(SLUG_CONFLICT)

            fields = dict(changes)
            wants_primary = fields.pop("is_primary", None)
            if wants_primary is not None:
                siblings = self._lock_siblings(restaurant_id)
                if location not in siblings:
                    raise NotFoundError("Location not found")
                if wants_primary:
                    self._promote(restaurant_id, location.id)
                elif location.is_primary:
                    successor = self._successor(restaurant_id, exclude_id=location.id)
                    if successor is not None:
                        self._promote(restaurant_id, successor.id)
                    else:
                        self.logger.info(
                            "Kept primary flag on the only location of the restaurant",
                            extra={"location_id": str(location.id)},
                        )

            for field, value in fields.items():
                setattr(location, field, value)
            try:
                self.db.flush()
            except StaleDataError:
                raise NotFoundError("Location not found")
            return location

        location = run_atomic(
            self.db, _update, name="update_location",
            conflict_message=SLUG_CONFLICT, retry_on=_lost_primary_race, log=self.logger,
        )
        self.logger.info(
            f"Location {location_id} updated: {sorted(changes)}",
            extra={"location_id": str(location_id)},
        )
        return location

    def set_primary(self, location_id: uuid.UUID) -> Location:
        """Make a location its restaurant's primary, atomically.

        Clears the flag on every sibling, then sets it on the target. Either
        both steps commit or neither does. Idempotent.

        Raises:
            NotFoundError: the location does not exist.
        """
        location_id = parse_uuid(location_id, "location_id")

        def _set_primary() -> Location:
            location = self.get(location_id)
            if location is None:
                raise NotFoundError("Location not found")
            siblings = self._lock_siblings(location.restaurant_id)
            if location not in siblings:
                raise NotFoundError("Location not found")
            self._promote(location.restaurant_id, location.id)
            return location

        location = run_atomic(
            self.db, _set_primary, name="set_primary_location",
            retry_on=_lost_primary_race, log=self.logger,
        )
        self.logger.info(
            "Primary location set",
            extra={"location_id": str(location.id), "restaurant_id": str(location.restaurant_id)},
        )
        return location

    def delete(self, location_id: uuid.UUID) -> bool:
        """Delete a location, re-electing the primary if needed.

        Raises:
            NotFoundError: the location does not exist.
            InvalidOperationError: it is the restaurant's only location.
        """
        location_id = parse_uuid(location_id, "location_id")

        def _delete() -> bool:
            location = self.get(location_id)
            if location is None:
                raise NotFoundError("Location not found")
            restaurant_id = location.restaurant_id

            siblings = self._lock_siblings(restaurant_id)
            if location not in siblings:
                raise NotFoundError("Location not found")
            if len(siblings) == 1:
                raise InvalidOperationError("Cannot delete the only location of a restaurant")

            if location.is_primary:
                successor = self._successor(restaurant_id, exclude_id=location.id)
                self.set_primary(successor.id)

            # Staff whose primary assignment disappears with this location
            orphaned_users = users_with_primary_at(self.db, location.id)

            self.db.delete(location)
            self.db.flush()

            for user_id in orphaned_users:
                elect_primary_assignment(self.db, user_id, log=self.logger)
            return True

        deleted = run_atomic(
            self.db, _delete, name="delete_location",
            retry_on=_lost_primary_race, log=self.logger,
        )
        self.logger.info("Location deleted", extra={"location_id": str(location_id)})
        return deleted

    def ensure_primary(self, restaurant_id: uuid.UUID) -> Optional[Location]:
        """Repair the primary flag for a restaurant and return its primary.

        Elects the successor when no location is primary and keeps only the
        oldest when several are (rows written outside the stores). Returns
        None for a restaurant without locations.
        """
        restaurant_id = parse_uuid(restaurant_id, "restaurant_id")

        def _ensure() -> Optional[Location]:
            siblings = self._lock_siblings(restaurant_id)
            if not siblings:
                return None
            primaries = sorted(
                (loc for loc in siblings if loc.is_primary),
                key=lambda loc: (loc.created_at, str(loc.id)),
            )
            if len(primaries) == 1:
                return primaries[0]
            target = primaries[0] if primaries else self._successor(restaurant_id)
            self.logger.warning(
                f"Repairing primary location: {len(primaries)} primaries found",
                extra={"restaurant_id": str(restaurant_id), "location_id": str(target.id)},
            )
            self._promote(restaurant_id, target.id)
            return target

        return run_atomic(
            self.db, _ensure, name="ensure_primary_location",
            retry_on=_lost_primary_race, log=self.logger,
        )

    # ========== INTERNALS ==========

    def _lock_siblings(self, restaurant_id: uuid.UUID) -> List[Location]:
        """Lock and reload every location of a restaurant.

        Rows are locked in id order so concurrent lockers cannot deadlock.
        """
        return (
            lock_rows(self.db.query(Location).filter(Location.restaurant_id == restaurant_id))
            .order_by(Location.id)
            .populate_existing()
            .all()
        )

    def _successor(self, restaurant_id: uuid.UUID, exclude_id: Optional[uuid.UUID] = None) -> Optional[Location]:
        """Deterministic replacement primary: active first, then oldest."""
        query = self.db.query(Location).filter(Location.restaurant_id == restaurant_id)
        if exclude_id is not None:
            query = query.filter(Location.id != exclude_id)
        return query.order_by(
            case((Location.status == LocationStatus.ACTIVE, 0), else_=1),
            Location.created_at.asc(),
            Location.id.asc(),
        ).first()

    def _clear_primary(self, restaurant_id: uuid.UUID, exclude_id: Optional[uuid.UUID] = None) -> int:
        query = self.db.query(Location).filter(
            Location.restaurant_id == restaurant_id,
            Location.is_primary == True,
        )
        if exclude_id is not None:
            query = query.filter(Location.id != exclude_id)
        return query.update({"is_primary": False}, synchronize_session="evaluate")

    def _promote(self, restaurant_id: uuid.UUID, location_id: uuid.UUID) -> None:
        """Clear every other primary, then set the flag on ``location_id``."""
        self._clear_primary(restaurant_id, exclude_id=location_id)
        self.db.query(Location).filter(Location.id == location_id).update(
            {"is_primary": True}, synchronize_session="evaluate"
        )
