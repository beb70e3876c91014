"""User location assignment schemas."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class AssignmentCreate(BaseModel):
    """Grant of a role to a user at a location."""

    user_id: uuid.UUID
    location_id: uuid.UUID
    role_id: Optional[uuid.UUID] = None
    is_primary_location: bool = False
    assigned_by: Optional[uuid.UUID] = None
    kds_stations: Optional[List[str]] = Field(default=None)


class AssignmentResponse(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    location_id: uuid.UUID
    role_id: Optional[uuid.UUID] = None
    is_primary_location: bool
    assigned_by: Optional[uuid.UUID] = None
    kds_stations: Optional[List[str]] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class UserLocationView(AssignmentResponse):
    """Assignment joined with the location it points at."""

    location_name: str
    restaurant_id: uuid.UUID
    address_street: Optional[str] = None
    address_city: Optional[str] = None
    address_state: Optional[str] = None
