"""Core infrastructure components."""
from .circuit_breaker import CircuitBreaker, CircuitState
from .exceptions import (
    AppException,
    CircuitBreakerOpenError,
    ForbiddenError,
    NotFoundError,
    UnauthenticatedError,
    UpstreamError,
    ValidationError,
)
from .identifiers import is_valid_id, new_id, require_valid_id

__all__ = [
    "AppException",
    "CircuitBreaker",
    "CircuitBreakerOpenError",
    "CircuitState",
    "ForbiddenError",
    "NotFoundError",
    "UnauthenticatedError",
    "UpstreamError",
    "ValidationError",
    "is_valid_id",
    "new_id",
    "require_valid_id",
]
