"""
Custom exceptions for the Trainer Portal.

This module defines a hierarchy of exceptions that provide clear error
handling throughout the application. Each exception includes:
- A descriptive message
- An error code for API responses
- HTTP status code mapping
- Optional details for debugging
"""

from typing import Any, Dict, Optional
from enum import Enum


class ErrorCode(str, Enum):
    """Error codes for consistent API error responses."""

    # General errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    METHOD_NOT_ALLOWED = "METHOD_NOT_ALLOWED"
    CONFLICT = "CONFLICT"
    FORBIDDEN = "FORBIDDEN"
    UNAUTHORIZED = "UNAUTHORIZED"
    PAYLOAD_TOO_LARGE = "PAYLOAD_TOO_LARGE"
    RATE_LIMITED = "RATE_LIMITED"

    # Auth errors
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"
    INVALID_TOKEN = "INVALID_TOKEN"

    # External service errors
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    STORAGE_ERROR = "STORAGE_ERROR"
    ANALYTICS_ERROR = "ANALYTICS_ERROR"

    # Data/Database errors
    DATABASE_ERROR = "DATABASE_ERROR"


class TrainerPortalError(Exception):
    """
    Base exception for all Trainer Portal errors.

    Attributes:
        message: Human-readable error message
        code: Error code from ErrorCode enum
        status_code: HTTP status code for API responses
        details: Optional dictionary with additional error details
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API response."""
        result: Dict[str, Any] = {
            "success": False,
            "error": {
                "code": self.code.value,
                "message": self.message,
            },
        }
        if self.details:
            result["error"]["details"] = self.details
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code.value}, message={self.message!r})"


# ============================================================================
# Client Errors (4xx)
# ============================================================================

class ValidationError(TrainerPortalError):
    """Raised when input validation fails."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        error_details = details or {}
        if field:
            error_details["field"] = field
        super().__init__(
            message=message,
            code=ErrorCode.VALIDATION_ERROR,
            status_code=400,
            details=error_details,
        )


class PayloadTooLargeError(TrainerPortalError):
    """Raised when an uploaded file exceeds the size limit."""

    def __init__(self, message: str, max_bytes: int) -> None:
        super().__init__(
            message=message,
            code=ErrorCode.PAYLOAD_TOO_LARGE,
            status_code=413,
            details={"max_bytes": max_bytes},
        )


class AuthenticationError(TrainerPortalError):
    """Raised when credentials or tokens are missing or invalid."""

    def __init__(
        self,
        message: str = "Authentication required",
        code: ErrorCode = ErrorCode.UNAUTHORIZED,
    ) -> None:
        super().__init__(message=message, code=code, status_code=401)


class AuthorizationError(TrainerPortalError):
    """Raised when an authenticated user lacks the required role."""

    def __init__(self, message: str = "Admin privileges required") -> None:
        super().__init__(message=message, code=ErrorCode.FORBIDDEN, status_code=403)


class NotFoundError(TrainerPortalError):
    """Raised when a requested resource is not found."""

    def __init__(
        self,
        resource_type: str,
        resource_id: Any = None,
        message: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        error_details = details or {}
        error_details["resource_type"] = resource_type
        if resource_id is not None:
            error_details["resource_id"] = str(resource_id)
        super().__init__(
            message=message or f"{resource_type} not found",
            code=ErrorCode.NOT_FOUND,
            status_code=404,
            details=error_details,
        )


class ConflictError(TrainerPortalError):
    """Raised when there's a resource conflict."""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(
            message=message,
            code=ErrorCode.CONFLICT,
            status_code=409,
            details=details,
        )


# ============================================================================
# External Service Errors
# ============================================================================

class ServiceUnavailableError(TrainerPortalError):
    """Raised when an optional integration is not configured."""

    def __init__(self, message: str, service: Optional[str] = None) -> None:
        super().__init__(
            message=message,
            code=ErrorCode.SERVICE_UNAVAILABLE,
            status_code=503,
            details={"service": service} if service else None,
        )


class StorageError(TrainerPortalError):
    """Raised when the object storage backend rejects a request."""

    def __init__(
        self,
        message: str = "Object storage request failed",
        key: Optional[str] = None,
    ) -> None:
        super().__init__(
            message=message,
            code=ErrorCode.STORAGE_ERROR,
            status_code=502,
            details={"key": key} if key else None,
        )


class AnalyticsError(TrainerPortalError):
    """Raised when the analytics provider fails or returns garbage."""

    def __init__(
        self,
        message: str = "Failed to fetch analytics data",
        upstream_status: Optional[int] = None,
    ) -> None:
        super().__init__(
            message=message,
            code=ErrorCode.ANALYTICS_ERROR,
            status_code=502,
            details={"upstream_status": upstream_status} if upstream_status else None,
        )


# ============================================================================
# Database Errors
# ============================================================================

class DatabaseError(TrainerPortalError):
    """Raised when a database operation fails."""

    def __init__(
        self,
        message: str = "Database operation failed",
        operation: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        error_details = details or {}
        if operation:
            error_details["operation"] = operation
        super().__init__(
            message=message,
            code=ErrorCode.DATABASE_ERROR,
            status_code=500,
            details=error_details,
        )
