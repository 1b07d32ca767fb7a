"""
Custom exception hierarchy for structured error handling.

WHY: Custom exceptions provide:
1. One stable error kind per failure class (validation, not found,
   forbidden, store failure)
2. HTTP status code mapping for FastAPI
3. Structured error responses with contextual data
4. No stack traces, SQL or driver text in response bodies

IMPORTANT: Raise these from services and stores, never bare Exception.
"""

from typing import Any, Dict, List, Optional


class AppException(Exception):
    """
    Base exception class for all application exceptions.

    All custom exceptions inherit from this class so that a single
    handler can render them.
    """

    status_code: int = 500
    default_message: str = "An unexpected error occurred"

    def __init__(
        self,
        message: Optional[str] = None,
        status_code: Optional[int] = None,
        **context: Any,
    ):
        """
        Initialize exception with message and context.

        Args:
            message: Human-readable error message
            status_code: HTTP status code (overrides class default)
            **context: Additional context (filtered in to_dict)
        """
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        self.context = context
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """
        Serialize exception to dictionary for JSON response.

        Returns:
            Dictionary with error details (sensitive fields filtered out)
        """
        sensitive_fields = {"password", "token", "secret", "key", "api_key"}
        filtered_context = {
            k: v for k, v in self.context.items() if k.lower() not in sensitive_fields
        }

        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "status_code": self.status_code,
            "details": filtered_context if filtered_context else None,
        }


# ============================================================================
# Authentication & Authorization Exceptions
# ============================================================================


class AuthenticationError(AppException):
    """
    Raised when no usable identity accompanies the request.

    HTTP Status: 401 Unauthorized
    """

    status_code = 401
    default_message = "Authentication required"


class TokenExpiredError(AuthenticationError):
    """
    Raised when the bearer token has expired.

    HTTP Status: 401 Unauthorized
    """

    default_message = "Token has expired"


class TokenInvalidError(AuthenticationError):
    """
    Raised when the bearer token is malformed or has an invalid signature.

    HTTP Status: 401 Unauthorized
    """

    default_message = "Token is invalid"


class ForbiddenError(AppException):
    """
    Raised when the authorization gate denies an action.

    WHY: Distinguishing authorization (403) from authentication (401) lets
    the presentation layer show "no permission" instead of "please log in".

    HTTP Status: 403 Forbidden
    """

    status_code = 403
    default_message = "You do not have permission to perform this action"


# ============================================================================
# Validation Exceptions
# ============================================================================


class ValidationError(AppException):
    """
    Raised when input validation fails.

    Field-level problems are carried as ``errors``, a list of
    ``{"field", "message", "type"}`` entries, matching the body produced
    for request validation errors.

    HTTP Status: 400 Bad Request
    """

    status_code = 400
    default_message = "Validation failed"

    @classmethod
    def for_field(cls, field: str, message: str, error_type: str = "value_error") -> "ValidationError":
        """Build a ValidationError for a single offending field."""
        return cls(
            message=message,
            errors=[{"field": field, "message": message, "type": error_type}],
        )

    @property
    def errors(self) -> List[Dict[str, Any]]:
        return self.context.get("errors", [])


# ============================================================================
# Resource Exceptions
# ============================================================================


class NotFoundError(AppException):
    """
    Raised when a referenced ticket, comment or user does not exist.

    HTTP Status: 404 Not Found
    """

    status_code = 404
    default_message = "Resource not found"


class TicketNotFoundError(NotFoundError):
    """Raised when a ticket doesn't exist."""

    default_message = "Ticket not found"


class UserNotFoundError(NotFoundError):
    """Raised when a user record doesn't exist."""

    default_message = "User not found"


# ============================================================================
# Store Exceptions
# ============================================================================


class StoreError(AppException):
    """
    Raised when the persistence store fails.

    WHY: Driver errors are caught in the store layer, logged there with
    their traceback, and replaced by this exception so that no SQL or
    connection detail reaches the client.

    HTTP Status: 500 Internal Server Error
    """

    status_code = 500
    default_message = "Storage operation failed"


class StoreUnavailableError(StoreError):
    """
    Raised when the store cannot be reached at all.

    HTTP Status: 503 Service Unavailable
    """

    status_code = 503
    default_message = "Storage is unavailable"
