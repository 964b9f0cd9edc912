"""ABOUTME: Custom exceptions for service layer operations
ABOUTME: Defines business logic exceptions with proper error messages"""

from openidp.translations import gettext as _


class OpenIDPError(Exception):
    """Base exception for all our custom errors."""


class ServiceLayerError(OpenIDPError):
    """Base exception for all service layer errors."""


class PasswordTooWeak(ServiceLayerError):
    """Exception if the password is too weak."""


class UserAlreadyExists(ServiceLayerError):
    """Raised when attempting to create a user that already exists."""

    def __init__(self, email: str = "") -> None:
        message = _("User with email '%(email)s' already exists", email=email) if email else _("User already exists")
        super().__init__(message)
        self.email = email


class InvalidCredentials(ServiceLayerError):
    """Raised when authentication fails due to invalid credentials."""

    def __init__(self, message: str = "") -> None:
        if not message:
            message = _("Invalid email or password")
        super().__init__(message)


class InvalidResetToken(ServiceLayerError):
    """Raised when a password reset token is invalid, expired, or already used."""

    def __init__(self, reason: str = "") -> None:
        if reason:
            message = _("Invalid password reset token: %(reason)s", reason=reason)
        else:
            message = _("Invalid password reset token")
        super().__init__(message)
        self.reason = reason


class RateLimitExceeded(ServiceLayerError):
    """Raised when a user has exceeded rate limits for an operation."""

    def __init__(self, operation: str = "", retry_after_seconds: int = 0) -> None:
        if operation and retry_after_seconds:
            message = _(
                "Rate limit exceeded for %(operation)s. Please try again in %(seconds)s seconds",
                operation=operation,
                seconds=retry_after_seconds,
            )
        elif operation:
            message = _("Rate limit exceeded for %(operation)s", operation=operation)
        else:
            message = _("Rate limit exceeded. Please try again later")
        super().__init__(message)
        self.operation = operation
        self.retry_after_seconds = retry_after_seconds


class ClientIdRequired(ServiceLayerError):
    """Raised before any lookup when a themed page is requested without a client id."""

    def __init__(self, operation: str) -> None:
        super().__init__(f"client_id is required in {operation}")
        self.operation = operation


class DefaultTemplateNotConfigured(OpenIDPError):
    """A page has no entry in the default layout mapping."""


class NotFoundError(ServiceLayerError):
    """General error to indicate something cannot be found in a repository"""


class UserNotFoundError(NotFoundError):
    """A user could not be found in the database"""


class ClientNotFoundError(NotFoundError):
    """A client could not be found in the database"""

    def __init__(self, client_id: str) -> None:
        super().__init__(f"Client '{client_id}' not found")
        self.client_id = client_id


class ThemeNotFoundError(NotFoundError):
    """A theme or one of its layouts could not be found in the database"""


class AlreadyProvisioned(ServiceLayerError):
    """Raised when a client or theme with the same identifier already exists."""
