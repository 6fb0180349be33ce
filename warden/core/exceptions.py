"""App-wide exception hierarchy.

Every error the service raises on purpose derives from AppException, which
carries the HTTP status and a machine-readable error_type. The handlers in
warden.core.exception_handlers turn these into JSON responses.
"""

from typing import Any


class AppException(Exception):
    """Base exception for all application errors."""

    status_code: int = 500
    error_type: str = "internal_error"

    def __init__(self, message: str = "An unexpected error occurred"):
        self.message = message
        super().__init__(message)

    def details(self) -> dict[str, Any]:
        """Extra fields merged into the error response body."""
        return {}


# Validation errors (400)
class ValidationError(AppException):
    """Malformed or missing input."""

    status_code = 400
    error_type = "validation_error"

    def __init__(self, message: str = "Validation failed"):
        super().__init__(message)


class BadRequestError(ValidationError):
    """Raised for general bad request errors."""

    error_type = "bad_request"

    def __init__(self, message: str = "Bad request"):
        super().__init__(message)


# Authentication errors (401)
class AuthenticationError(AppException):
    """Base class for authentication failures."""

    status_code = 401
    error_type = "authentication_error"

    def __init__(self, message: str = "Authentication failed"):
        super().__init__(message)


class InvalidCredentialsError(AuthenticationError):
    """Raised when email/password (or email/code) combination is invalid."""

    error_type = "invalid_credentials"

    def __init__(self, message: str = "Invalid email or password"):
        super().__init__(message)


class InvalidTokenError(AuthenticationError):
    """Raised when a bearer or linking-intent token is invalid or expired."""

    error_type = "invalid_token"

    def __init__(self, message: str = "Invalid or expired token"):
        super().__init__(message)


# Authorization errors (403)
class AuthorizationError(AppException):
    """Base class for authorization failures."""

    status_code = 403
    error_type = "authorization_error"

    def __init__(self, message: str = "Access denied"):
        super().__init__(message)


# Not found errors (404)
class NotFoundError(AppException):
    """Base class for resource not found errors."""

    status_code = 404
    error_type = "not_found"

    def __init__(self, message: str = "Resource not found"):
        super().__init__(message)


# Conflict errors (unique-field collisions)
class ConflictError(AppException):
    """Raised when a write collides with a unique field.

    Reported as 400 so that registration keeps its 201/400 contract.
    """

    status_code = 400
    error_type = "conflict"

    def __init__(self, message: str = "Resource conflict", field: str | None = None):
        self.field = field
        super().__init__(message)

    def details(self) -> dict[str, Any]:
        return {"field": self.field} if self.field else {}


# Provider not configured (503)
class NotConfiguredError(AppException):
    """Raised when a requested OAuth provider has no credentials."""

    status_code = 503
    error_type = "provider_not_configured"

    def __init__(self, provider: str, message: str | None = None):
        self.provider = provider
        super().__init__(message or f"OAuth {provider} is not configured on the server")

    def details(self) -> dict[str, Any]:
        return {"provider": self.provider}


# External service errors (502)
class ProviderError(AppException):
    """Raised when an OAuth provider returns an unexpected response."""

    status_code = 502
    error_type = "provider_error"

    def __init__(
        self, message: str = "Authentication provider returned an invalid response"
    ):
        super().__init__(message)


# Internal errors (500)
class InternalError(AppException):
    """Raised for internal server errors."""

    status_code = 500
    error_type = "internal_error"

    def __init__(self, message: str = "An internal error occurred"):
        super().__init__(message)
