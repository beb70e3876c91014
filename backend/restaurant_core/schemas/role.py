"""Role schemas."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from restaurant_core.models.role import MAX_ROLE_LEVEL, MIN_ROLE_LEVEL, RoleScope


class RoleCreate(BaseModel):
    """Schema for creating a catalog role."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=2, max_length=50, pattern=r"^[a-z0-9_]+$")
    display_name: str = Field(..., min_length=2, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    level: int = Field(default=MIN_ROLE_LEVEL, ge=MIN_ROLE_LEVEL, le=MAX_ROLE_LEVEL)
    scope: RoleScope = RoleScope.LOCATION
    is_admin_role: bool = False
    can_manage_users: bool = False
    can_manage_locations: bool = False
    is_active: bool = True

    @field_validator("name", mode="before")
    @classmethod
    def lowercase_name(cls, v):
        return v.strip().lower() if isinstance(v, str) else v


class RoleUpdate(BaseModel):
    """Schema for updating a role. The name is immutable."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    display_name: Optional[str] = Field(default=None, min_length=2, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    level: Optional[int] = Field(default=None, ge=MIN_ROLE_LEVEL, le=MAX_ROLE_LEVEL)
    scope: Optional[RoleScope] = None
    is_admin_role: Optional[bool] = None
    can_manage_users: Optional[bool] = None
    can_manage_locations: Optional[bool] = None
    is_active: Optional[bool] = None

    @model_validator(mode="after")
    def require_a_change(self) -> "RoleUpdate":
        if not self.model_fields_set:
            raise ValueError("at least one field is required")
        for field in self.model_fields_set - {"description"}:
            if getattr(self, field) is None:
                raise ValueError(f"{field} cannot be null")
        return self


class RoleResponse(BaseModel):
    id: uuid.UUID
    name: str
    display_name: str
    description: Optional[str] = None
    level: int
    scope: RoleScope
    is_admin_role: bool
    can_manage_users: bool
    can_manage_locations: bool
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
