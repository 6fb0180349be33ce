"""User domain exceptions.

Not-found and unique-field conflicts for user records.
"""

from warden.core.exceptions import ConflictError, NotFoundError


class UserNotFoundError(NotFoundError):
    """Raised when user cannot be found."""

    error_type = "user_not_found"

    def __init__(self, message: str = "User not found"):
        super().__init__(message)


class EmailExistsError(ConflictError):
    """Raised when attempting to register with an existing email."""

    error_type = "email_exists"

    def __init__(self, message: str = "Email already registered"):
        super().__init__(message, field="email")


class UsernameExistsError(ConflictError):
    """Raised when attempting to register with a taken username."""

    error_type = "username_exists"

    def __init__(self, message: str = "Username already in use"):
        super().__init__(message, field="username")


class ProviderIdExistsError(ConflictError):
    """Raised when a provider external id is already bound to another user."""

    error_type = "provider_id_exists"

    def __init__(self, field: str, message: str = "Social account already linked"):
        super().__init__(message, field=field)
