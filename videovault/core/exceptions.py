"""
Custom exception hierarchy for centralized error handling.
All exceptions map to appropriate HTTP status codes.
"""
from typing import Any, Dict, Optional


class AppException(Exception):
    """Base exception for all application errors."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        error_code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to API response envelope."""
        return {
            "statusCode": self.status_code,
            "success": False,
            "message": self.message,
            "error": {
                "code": self.error_code,
                "details": self.details,
            },
        }


class ValidationError(AppException):
    """Invalid input data (malformed id, missing field, bad pagination)."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(
            message=message,
            status_code=400,
            error_code="VALIDATION_ERROR",
            details=details,
        )


class UnauthenticatedError(AppException):
    """Viewer identity missing or invalid where one is required."""

    def __init__(self, message: str = "Unauthorized request") -> None:
        super().__init__(
            message=message,
            status_code=401,
            error_code="UNAUTHENTICATED",
        )


class ForbiddenError(AppException):
    """Viewer is not the owner of the resource."""

    def __init__(self, resource: str, action: str) -> None:
        super().__init__(
            message=f"You are not authorized to {action} this {resource}",
            status_code=403,
            error_code="FORBIDDEN",
            details={"resource": resource, "action": action},
        )


class NotFoundError(AppException):
    """Resource not found."""

    def __init__(self, resource: str, identifier: str) -> None:
        super().__init__(
            message=f"{resource.capitalize()} not found: {identifier}",
            status_code=404,
            error_code="NOT_FOUND",
            details={"resource": resource, "identifier": identifier},
        )


class UpstreamError(AppException):
    """Object storage or entity store operation failed."""

    def __init__(
        self,
        service_name: str,
        reason: str = "Unknown error",
        status_code: int = 500,
        error_code: str = "UPSTREAM_FAILURE",
    ) -> None:
        super().__init__(
            message=f"{service_name} failed: {reason}",
            status_code=status_code,
            error_code=error_code,
            details={"service": service_name, "reason": reason},
        )


class CircuitBreakerOpenError(UpstreamError):
    """Circuit breaker is open - service calls blocked."""

    def __init__(self, service_name: str) -> None:
        super().__init__(
            service_name=service_name,
            reason="circuit breaker open",
            status_code=503,
            error_code="CIRCUIT_BREAKER_OPEN",
        )
