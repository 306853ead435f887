"""Custom exceptions for LifeOS.

Provides clear error messages and a single base class that the HTTP layer
can turn into JSON error responses.
"""

from typing import Any, Dict, Optional


class LifeOSError(Exception):
    """Base exception for all LifeOS errors."""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.error_code = error_code or self.__class__.__name__

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "error_code": self.error_code,
            "details": self.details,
        }


class AuthenticationError(LifeOSError):
    """Missing, malformed, badly signed or expired credential."""

    def __init__(self, message: str = "Authentication failed", **kwargs):
        kwargs.setdefault("error_code", "AUTH_FAILED")
        super().__init__(message, **kwargs)


class ConfigurationError(LifeOSError):
    """Configuration-related errors."""
    pass


class ValidationError(LifeOSError):
    """Errors related to input validation."""
    pass


class GatewayError(LifeOSError):
    """Upstream call failed before any response was received."""

    def __init__(self, message: str = "Gateway error", backend: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        if backend:
            self.details["backend"] = backend


class NotificationNotFoundError(LifeOSError):
    """Notification does not exist or belongs to another user."""

    def __init__(self, notification_id: str, user_id: Optional[str] = None):
        super().__init__(
            f"Notification not found: {notification_id}",
            details={"notification_id": notification_id, "user_id": user_id},
            error_code="NOTIFICATION_NOT_FOUND",
        )


def format_error_for_user(error: Exception, include_details: bool = False) -> str:
    """Format an error for user-friendly display.

    Args:
        error: The exception to format
        include_details: Whether to include detailed information
    """
    if isinstance(error, LifeOSError):
        message = str(error)
        if include_details and error.details:
            details_str = ", ".join(f"{k}: {v}" for k, v in error.details.items())
            message += f" (Details: {details_str})"
        return message
    else:
        return f"An unexpected error occurred: {error}"

