"""
Assignment Store

Grants users roles at locations and tracks each user's primary location.
At most one assignment per user carries ``is_primary_location``; the flag
is moved with the same clear-then-set pattern the location store uses.
"""

import logging
import uuid
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from restaurant_core.core.config import settings
from restaurant_core.core.exceptions import NotFoundError
from restaurant_core.core.logging_config import get_logger
from restaurant_core.core.validators import parse_input, parse_uuid
from restaurant_core.db.transaction import lock_rows, run_atomic, violates_unique
from restaurant_core.models.assignment import UserLocationAssignment
from restaurant_core.models.location import Location
from restaurant_core.models.user import User
from restaurant_core.schemas.assignment import AssignmentCreate, UserLocationView
from restaurant_core.services.role_service import RoleCatalog

logger = logging.getLogger(__name__)

PAIR_CONFLICT = "User is already assigned to this location"


def _lost_race(exc: IntegrityError) -> bool:
    return violates_unique(
        exc, "uq_user_location_assignments_one_primary", "user_location_assignments.user_id"
    ) or violates_unique(
        exc,
        "uq_user_location_assignments_pair",
        "user_location_assignments.user_id, user_location_assignments.location_id",
    )


def users_with_primary_at(db: Session, location_id: uuid.UUID) -> List[uuid.UUID]:
    """Users whose primary assignment points at ``location_id``."""
    rows = (
        db.query(UserLocationAssignment.user_id)
        .filter(
            UserLocationAssignment.location_id == location_id,
            UserLocationAssignment.is_primary_location == True,
        )
        .all()
    )
    return [row.user_id for row in rows]


def elect_primary_assignment(
    db: Session, user_id: uuid.UUID, log: Optional[logging.Logger] = None
) -> Optional[UserLocationAssignment]:
    """Give ``user_id`` a primary assignment if they have none.

    The oldest remaining assignment wins. Must run inside the caller's
    transaction.
    """
    log = log or logger
    assignments = _lock_user_rows(db, user_id)
    if not assignments or any(a.is_primary_location for a in assignments):
        return None
    chosen = min(assignments, key=lambda a: (a.created_at, str(a.id)))
    db.query(UserLocationAssignment).filter(UserLocationAssignment.id == chosen.id).update(
        {"is_primary_location": True}, synchronize_session="evaluate"
    )
    log.info(
        "Primary location re-elected",
        extra={"user_id": str(user_id), "location_id": str(chosen.location_id)},
    )
    return chosen


def _pair_ids(user_id, location_id):
    return parse_uuid(user_id, "user_id"), parse_uuid(location_id, "location_id")


def _lock_user_rows(db: Session, user_id: uuid.UUID) -> List[UserLocationAssignment]:
    return (
        lock_rows(db.query(UserLocationAssignment).filter(UserLocationAssignment.user_id == user_id))
        .order_by(UserLocationAssignment.id)
        .populate_existing()
        .all()
    )


class AssignmentStore:
    """User to location grants and the per-user primary flag."""

    def __init__(
        self,
        db: Session,
        logger: Optional[logging.Logger] = None,
        roles: Optional[RoleCatalog] = None,
        auto_promote_on_remove: Optional[bool] = None,
        enforce_role_legality: Optional[bool] = None,
    ):
        self.db = db
        self.logger = get_logger(__name__, logger)
        self.roles = roles or RoleCatalog(db, self.logger)
        self.auto_promote_on_remove = (
            settings.assignment_auto_promote_on_remove if auto_promote_on_remove is None else auto_promote_on_remove
        )
        self.enforce_role_legality = (
            settings.enforce_role_legality if enforce_role_legality is None else enforce_role_legality
        )

    # ========== READS ==========

    def get(self, user_id: uuid.UUID, location_id: uuid.UUID) -> Optional[UserLocationAssignment]:
        user_id, location_id = _pair_ids(user_id, location_id)
        return (
            self.db.query(UserLocationAssignment)
            .filter(
                UserLocationAssignment.user_id == user_id,
                UserLocationAssignment.location_id == location_id,
            )
            .first()
        )

    def user_has_location_access(self, user_id: uuid.UUID, location_id: uuid.UUID) -> bool:
        user_id, location_id = _pair_ids(user_id, location_id)
        return (
            self.db.query(UserLocationAssignment.id)
            .filter(
                UserLocationAssignment.user_id == user_id,
                UserLocationAssignment.location_id == location_id,
            )
            .first()
            is not None
        )

    def get_user_primary(self, user_id: uuid.UUID) -> Optional[UserLocationAssignment]:
        user_id = parse_uuid(user_id, "user_id")
        return (
            self.db.query(UserLocationAssignment)
            .filter(
                UserLocationAssignment.user_id == user_id,
                UserLocationAssignment.is_primary_location == True,
            )
            .first()
        )

    def get_user_assignments(self, user_id: uuid.UUID) -> List[UserLocationView]:
        """A user's assignments with location details, primary first."""
        user_id = parse_uuid(user_id, "user_id")
        rows = (
            self.db.query(UserLocationAssignment, Location)
            .join(Location, Location.id == UserLocationAssignment.location_id)
            .filter(UserLocationAssignment.user_id == user_id)
            .order_by(UserLocationAssignment.is_primary_location.desc(), Location.name.asc())
            .all()
        )
        views = []
        for assignment, location in rows:
            view = UserLocationView.model_validate(
                {
                    "id": assignment.id,
                    "user_id": assignment.user_id,
                    "location_id": assignment.location_id,
                    "role_id": assignment.role_id,
                    "is_primary_location": assignment.is_primary_location,
                    "assigned_by": assignment.assigned_by,
                    "kds_stations": assignment.kds_stations,
                    "created_at": assignment.created_at,
                    "updated_at": assignment.updated_at,
                    "location_name": location.name,
                    "restaurant_id": location.restaurant_id,
                    "address_street": location.address_street,
                    "address_city": location.address_city,
                    "address_state": location.address_state,
                }
            )
            views.append(view)
        return views

    def get_location_assignments(self, location_id: uuid.UUID) -> List[UserLocationAssignment]:
        location_id = parse_uuid(location_id, "location_id")
        return (
            self.db.query(UserLocationAssignment)
            .filter(UserLocationAssignment.location_id == location_id)
            .order_by(UserLocationAssignment.created_at.asc(), UserLocationAssignment.id.asc())
            .all()
        )

    # ========== MUTATIONS ==========

    def assign(
        self,
        user_id: uuid.UUID,
        location_id: uuid.UUID,
        role_id: Optional[uuid.UUID] = None,
        *,
        is_primary_location: bool = False,
        assigned_by: Optional[uuid.UUID] = None,
        kds_stations: Optional[List[str]] = None,
    ) -> UserLocationAssignment:
        """Grant ``role_id`` to a user at a location.

        Idempotent: an existing (user, location) row is returned, with its
        role replaced when a different one is given. The user's first
        assignment becomes their primary location.

        Raises:
            NotFoundError: user, location or role does not exist.
            ValidationError: malformed input, or the role may not be granted
                at a location.
        """
        grant = parse_input(
            AssignmentCreate,
            {
                "user_id": user_id,
                "location_id": location_id,
                "role_id": role_id,
                "is_primary_location": is_primary_location,
                "assigned_by": assigned_by,
                "kds_stations": kds_stations,
            },
            "Invalid assignment",
        )
        user_id, location_id, role_id = grant.user_id, grant.location_id, grant.role_id

        def _assign() -> UserLocationAssignment:
            if self.db.query(User.id).filter(User.id == user_id).first() is None:
                raise NotFoundError("User not found")
            if self.db.query(Location.id).filter(Location.id == location_id).first() is None:
                raise NotFoundError("Location not found")
            if role_id is not None:
                if self.enforce_role_legality:
                    self.roles.check_assignable(role_id)
                elif self.roles.get(role_id) is None:
                    raise NotFoundError("Role not found")

            current = _lock_user_rows(self.db, user_id)
            existing = next((a for a in current if a.location_id == location_id), None)

            if existing is not None:
                if role_id is not None and existing.role_id != role_id:
                    existing.role_id = role_id
                    self.db.flush()
                    self.logger.info(
                        "Assignment role changed",
                        extra={"user_id": str(user_id), "location_id": str(location_id), "role_id": str(role_id)},
                    )
                if grant.is_primary_location and not existing.is_primary_location:
                    self._promote(user_id, existing.id)
                return existing

            make_primary = grant.is_primary_location or not current
            if make_primary and current:
                self._clear_primary(user_id)

            assignment = UserLocationAssignment(
                user_id=user_id,
                location_id=location_id,
                role_id=role_id,
                is_primary_location=make_primary,
                assigned_by=grant.assigned_by,
                kds_stations=grant.kds_stations,
            )
            self.db.add(assignment)
            self.db.flush()
            self.logger.info(
                "User assigned to location",
                extra={"user_id": str(user_id), "location_id": str(location_id), "is_primary": make_primary},
            )
            return assignment

        return run_atomic(
            self.db, _assign, name="assign_user_to_location",
            conflict_message=PAIR_CONFLICT, retry_on=_lost_race, log=self.logger,
        )

    def set_primary_location(self, user_id: uuid.UUID, location_id: uuid.UUID) -> bool:
        """Make ``location_id`` the user's primary location.

        Returns False, changing nothing, when the user is not assigned there.
        """
        user_id, location_id = _pair_ids(user_id, location_id)

        def _set_primary() -> bool:
            current = _lock_user_rows(self.db, user_id)
            target = next((a for a in current if a.location_id == location_id), None)
            if target is None:
                return False
            self._promote(user_id, target.id)
            return True

        updated = run_atomic(
            self.db, _set_primary, name="set_user_primary_location",
            retry_on=_lost_race, log=self.logger,
        )
        if updated:
            self.logger.info(
                "User primary location set",
                extra={"user_id": str(user_id), "location_id": str(location_id)},
            )
        else:
            self.logger.debug(
                "No assignment to mark primary",
                extra={"user_id": str(user_id), "location_id": str(location_id)},
            )
        return updated

    def remove(self, user_id: uuid.UUID, location_id: uuid.UUID) -> bool:
        """Revoke the user's assignment at a location.

        Returns False when there was nothing to remove. Removing the primary
        assignment leaves the user without one unless auto-promotion is
        enabled; callers then pick the replacement via
        ``set_primary_location``.
        """
        user_id, location_id = _pair_ids(user_id, location_id)

        def _remove() -> bool:
            current = _lock_user_rows(self.db, user_id)
            target = next((a for a in current if a.location_id == location_id), None)
            if target is None:
                return False
            was_primary = target.is_primary_location
            self.db.delete(target)
            self.db.flush()
            if was_primary and self.auto_promote_on_remove:
                elect_primary_assignment(self.db, user_id, log=self.logger)
            return True

        removed = run_atomic(self.db, _remove, name="remove_user_from_location", log=self.logger)
        if removed:
            self.logger.info(
                "User removed from location",
                extra={"user_id": str(user_id), "location_id": str(location_id)},
            )
        return removed

    # ========== INTERNALS ==========

    def _clear_primary(self, user_id: uuid.UUID, exclude_id: Optional[uuid.UUID] = None) -> int:
        query = self.db.query(UserLocationAssignment).filter(
            UserLocationAssignment.user_id == user_id,
            UserLocationAssignment.is_primary_location == True,
        )
        if exclude_id is not None:
            query = query.filter(UserLocationAssignment.id != exclude_id)
        return query.update({"is_primary_location": False}, synchronize_session="evaluate")

    def _promote(self, user_id: uuid.UUID, assignment_id: uuid.UUID) -> None:
        self._clear_primary(user_id, exclude_id=assignment_id)
        self.db.query(UserLocationAssignment).filter(UserLocationAssignment.id == assignment_id).update(
            {"is_primary_location": True}, synchronize_session="evaluate"
        )
