"""Reusable input validators.

Stores accept either a schema instance or a plain mapping; both go through
``parse_input`` so callers always see the domain ``ValidationError``.
"""

import uuid
from typing import Annotated, Any, Mapping, Type, TypeVar, Union

from fastapi import Path
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from restaurant_core.core.exceptions import ValidationError, from_pydantic

SchemaT = TypeVar("SchemaT", bound=BaseModel)

# UUID validator for path parameters in controllers built on the stores
ResourceId = Annotated[uuid.UUID, Path(description="Resource ID (UUID)")]


def parse_input(
    schema: Type[SchemaT],
    data: Union[SchemaT, Mapping[str, Any]],
    message: str = "Validation failed",
) -> SchemaT:
    """Validate ``data`` against ``schema``."""
    if isinstance(data, schema):
        return data
    if not isinstance(data, Mapping):
        raise ValidationError(f"{message}: expected an object, got {type(data).__name__}")
    try:
        return schema.model_validate(dict(data))
    except PydanticValidationError as e:
        raise from_pydantic(e, message) from e


def parse_uuid(value: Any, field: str = "id") -> uuid.UUID:
    """Coerce a UUID or its string form; anything else is a ValidationError."""
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {field} format. Must be a valid UUID.")
