"""
Role Catalog Service

Read-mostly access to the global role catalog plus the administrative
create/update/soft-delete operations. Roles are never hard-deleted:
assignments hold a durable reference to the role id.
"""

import logging
import uuid
from typing import Any, List, Mapping, Optional, Union

from sqlalchemy.orm import Session

from restaurant_core.core.exceptions import ConflictError, NotFoundError, ValidationError
from restaurant_core.core.logging_config import get_logger
from restaurant_core.core.validators import parse_input, parse_uuid
from restaurant_core.db.transaction import run_atomic
from restaurant_core.models.role import ASSIGNABLE_SCOPES, Role, RoleScope
from restaurant_core.schemas.role import RoleCreate, RoleUpdate


class RoleCatalog:
    """Role lookups and the scope rules that gate location assignments."""

    def __init__(self, db: Session, logger: Optional[logging.Logger] = None):
        self.db = db
        self.logger = get_logger(__name__, logger)

    # ========== LOOKUPS ==========

    def get(self, role_id: uuid.UUID) -> Optional[Role]:
        role_id = parse_uuid(role_id, "role_id")
        return self.db.query(Role).filter(Role.id == role_id).first()

    def find_by_name(self, name: str) -> Optional[Role]:
        """Find a role by name (case-insensitive)."""
        return self.db.query(Role).filter(Role.name == name.strip().lower()).first()

    def get_active_roles(self) -> List[Role]:
        return (
            self.db.query(Role)
            .filter(Role.is_active.is_(True))
            .order_by(Role.level.desc(), Role.name)
            .all()
        )

    def get_roles_by_scope(self, scope: Union[RoleScope, str]) -> List[Role]:
        """Active roles of one scope (system, restaurant, location)."""
        try:
            scope_value = RoleScope(scope).value
        except ValueError:
            raise ValidationError(f"Invalid role scope: {scope!r}")
        return (
            self.db.query(Role)
            .filter(Role.scope == scope_value, Role.is_active.is_(True))
            .order_by(Role.level.desc(), Role.name)
            .all()
        )

    def get_admin_roles(self) -> List[Role]:
        return (
            self.db.query(Role)
            .filter(Role.is_admin_role.is_(True), Role.is_active.is_(True))
            .order_by(Role.level.desc(), Role.name)
            .all()
        )

    # ========== ADMINISTRATION ==========

    def create(self, data: Union[RoleCreate, Mapping[str, Any]]) -> Role:
        """Create a role. Raises ConflictError if the name is taken."""
        payload = parse_input(RoleCreate, data, "Invalid role data")

        def _create() -> Role:
            if self.find_by_name(payload.name):
                raise ConflictError(f"Role '{payload.name}' already exists")
            role = Role(**payload.model_dump())
            self.db.add(role)
            self.db.flush()
            return role

        role = run_atomic(
            self.db, _create, name="create_role",
            conflict_message=f"Role '{payload.name}' already exists", log=self.logger,
        )
        self.logger.info(f"Role created: {role.name}", extra={"role_id": str(role.id)})
        return role

    def update(self, role_id: uuid.UUID, data: Union[RoleUpdate, Mapping[str, Any]]) -> Role:
        role_id = parse_uuid(role_id, "role_id")
        payload = parse_input(RoleUpdate, data, "Invalid role update")
        changes = payload.model_dump(exclude_unset=True)

        def _update() -> Role:
            role = self.get(role_id)
            if role is None:
                raise NotFoundError("Role not found")
            for field, value in changes.items():
                setattr(role, field, value)
            self.db.flush()
            return role

        role = run_atomic(self.db, _update, name="update_role", log=self.logger)
        self.logger.info(f"Role {role.name} updated: {sorted(changes)}", extra={"role_id": str(role_id)})
        return role

    def soft_delete(self, role_id: uuid.UUID) -> Role:
        """Deactivate a role. Existing assignments keep referencing it."""
        return self.update(role_id, {"is_active": False})

    # ========== SCOPE RULES ==========

    def check_assignable(self, role_id: uuid.UUID) -> Role:
        """Return the role if it may be granted at a location.

        Raises:
            NotFoundError: the role does not exist.
            ValidationError: the role is inactive or system-scoped.
        """
        role = self.get(role_id)
        if role is None:
            raise NotFoundError("Role not found")
        if not role.is_active:
            raise ValidationError(f"Role '{role.name}' is inactive")
        if role.scope not in ASSIGNABLE_SCOPES:
            raise ValidationError(
                f"Role '{role.name}' has scope '{role.scope}' and cannot be assigned to a location"
            )
        return role
