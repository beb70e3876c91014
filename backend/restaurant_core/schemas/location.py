"""Location schemas."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

TIME_PATTERN = r"^([01]?[0-9]|2[0-3]):[0-5][0-9]$"
SLUG_PATTERN = r"^[a-z0-9-]+$"
PHONE_PATTERN = r"^\d{10,15}$"

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")
HOURS_KEYS = WEEKDAYS + ("holidays",)


class DayHours(BaseModel):
    """Opening window for one weekday (or the holiday override)."""

    model_config = ConfigDict(extra="forbid")

    open: Optional[str] = Field(default=None, pattern=TIME_PATTERN)
    close: Optional[str] = Field(default=None, pattern=TIME_PATTERN)
    closed: bool = False

    @model_validator(mode="after")
    def require_times_when_open(self) -> "DayHours":
        if not self.closed and (self.open is None or self.close is None):
            raise ValueError("open and close are required unless the day is closed")
        return self


class OperatingHours(BaseModel):
    """Full weekly map: seven weekdays plus a holiday override."""

    model_config = ConfigDict(extra="forbid")

    monday: DayHours
    tuesday: DayHours
    wednesday: DayHours
    thursday: DayHours
    friday: DayHours
    saturday: DayHours
    sunday: DayHours
    holidays: DayHours


class LocationBase(BaseModel):
    """Fields shared by create and update payloads."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    phone: Optional[str] = Field(default=None, pattern=PHONE_PATTERN)
    whatsapp: Optional[str] = Field(default=None, pattern=PHONE_PATTERN)
    address_zip_code: Optional[str] = Field(default=None, max_length=10)
    address_street: Optional[str] = Field(default=None, max_length=255)
    address_street_number: Optional[str] = Field(default=None, max_length=10)
    address_complement: Optional[str] = Field(default=None, max_length=255)
    address_city: Optional[str] = Field(default=None, max_length=100)
    address_state: Optional[str] = Field(default=None, max_length=50)


class LocationCreate(LocationBase):
    """Location creation schema."""

    name: str = Field(..., min_length=2, max_length=255)
    url_name: str = Field(..., min_length=2, max_length=100, pattern=SLUG_PATTERN)
    operating_hours: OperatingHours
    selected_features: List[str] = Field(default_factory=list)
    is_primary: bool = False
    status: Literal["active", "inactive"] = "active"

    @field_validator("url_name", mode="before")
    @classmethod
    def lowercase_url_name(cls, v):
        return v.strip().lower() if isinstance(v, str) else v


class LocationUpdate(LocationBase):
    """Partial update; only fields explicitly set are applied."""

    name: Optional[str] = Field(default=None, min_length=2, max_length=255)
    url_name: Optional[str] = Field(default=None, min_length=2, max_length=100, pattern=SLUG_PATTERN)
    operating_hours: Optional[OperatingHours] = None
    selected_features: Optional[List[str]] = None
    is_primary: Optional[bool] = None
    status: Optional[Literal["active", "inactive"]] = None

    @field_validator("url_name", mode="before")
    @classmethod
    def lowercase_url_name(cls, v):
        return v.strip().lower() if isinstance(v, str) else v

    @model_validator(mode="after")
    def reject_null_required_fields(self) -> "LocationUpdate":
        for field in ("name", "url_name", "operating_hours", "selected_features", "is_primary", "status"):
            if field in self.model_fields_set and getattr(self, field) is None:
                raise ValueError(f"{field} cannot be null")
        return self

    def changes(self) -> Dict[str, Any]:
        """Fields the caller set, with nested models dumped to plain dicts."""
        return self.model_dump(exclude_unset=True)


class LocationResponse(BaseModel):
    """Location row as handed back to callers."""

    id: uuid.UUID
    restaurant_id: uuid.UUID
    name: str
    url_name: str
    phone: Optional[str] = None
    whatsapp: Optional[str] = None
    address_zip_code: Optional[str] = None
    address_street: Optional[str] = None
    address_street_number: Optional[str] = None
    address_complement: Optional[str] = None
    address_city: Optional[str] = None
    address_state: Optional[str] = None
    operating_hours: Dict[str, Any]
    selected_features: List[str]
    status: str
    is_primary: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class LocationStats(BaseModel):
    """Location counts for one restaurant."""

    total_locations: int = 0
    active_locations: int = 0
    inactive_locations: int = 0
    primary_locations: int = 0
