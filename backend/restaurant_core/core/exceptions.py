"""Domain exception classes for the restaurant core.

Stores raise these; they never carry transport-level text or status codes.
See ``restaurant_core.core.http_errors`` for the mapping used by controllers.
"""

from typing import Any, Dict, List, Optional


class RestaurantCoreError(Exception):
    """Base exception for the restaurant core."""

    kind = "error"

    def __init__(self, message: str = "An error occurred", details: Optional[List[Dict[str, Any]]] = None):
        self.message = message
        self.details = details or []
        super().__init__(self.message)


class NotFoundError(RestaurantCoreError):
    """Raised when a referenced restaurant, location, assignment or role is absent."""

    kind = "not_found"


class ConflictError(RestaurantCoreError):
    """Raised on a duplicate slug or a duplicate (user, location) insert."""

    kind = "conflict"


class ValidationError(RestaurantCoreError):
    """Raised when input fails shape validation (address, hours, slug...)."""

    kind = "validation_error"


class InvalidOperationError(RestaurantCoreError):
    """Raised when an operation would break a business rule."""

    kind = "invalid_operation"


class StoreError(RestaurantCoreError):
    """Raised for store failures not otherwise classified."""

    kind = "store_error"

    def __init__(self, message: str = "Data store error", details=None, original: Optional[BaseException] = None):
        super().__init__(message, details)
        self.original = original


def from_pydantic(exc, message: str = "Validation failed") -> ValidationError:
    """Convert a pydantic ``ValidationError`` into the domain ``ValidationError``."""
    details = [
        {
            "field": ".".join(str(p) for p in err.get("loc", ())),
            "message": err.get("msg", ""),
        }
        for err in exc.errors()
    ]
    return ValidationError(message, details)
