"""
Document identifiers.
Ids are BSON ObjectIds rendered as 24-character hex strings.
"""
from typing import Any

from bson import ObjectId

from videovault.core.exceptions import ValidationError


def new_id() -> str:
    """Generate a fresh document id."""
    return str(ObjectId())


def is_valid_id(value: Any) -> bool:
    """Well-formed identifier predicate."""
    return isinstance(value, str) and len(value) == 24 and ObjectId.is_valid(value)


def require_valid_id(value: Any, name: str) -> str:
    """Return `value` unchanged or raise ValidationError naming the field."""
    if not is_valid_id(value):
        raise ValidationError(f"Invalid {name} format", details={name: value})
    return value
