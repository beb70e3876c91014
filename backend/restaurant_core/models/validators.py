"""Model-level validation utilities for data integrity.

Provides reusable validators that enforce shape rules at the ORM level,
so bad data cannot reach the database regardless of which store writes it.
"""


def in_range(key: str, value, minimum: int, maximum: int):
    """Validate that an integer value lies within [minimum, maximum]."""
    if value is not None:
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError(f"{key} must be an integer, got {type(value).__name__}")
        if value < minimum or value > maximum:
            raise ValueError(f"{key} must be between {minimum} and {maximum}, got {value}")
    return value


def one_of(key: str, value, allowed):
    """Validate that a value is one of ``allowed``."""
    if value is not None and value not in allowed:
        raise ValueError(f"{key} must be one of {list(allowed)}, got {value!r}")
    return value


def validate_list(key: str, value):
    """Validate that a JSON column value is a list of strings (or None)."""
    if value is not None:
        if not isinstance(value, list):
            raise ValueError(f"{key} must be a list, got {type(value).__name__}")
        for i, item in enumerate(value):
            if not isinstance(item, str):
                raise ValueError(f"{key}[{i}] must be a string, got {type(item).__name__}")
    return value


def validate_dict(key: str, value):
    """Validate that a JSON column value is a dict (or None)."""
    if value is not None and not isinstance(value, dict):
        raise ValueError(f"{key} must be a dict, got {type(value).__name__}")
    return value
