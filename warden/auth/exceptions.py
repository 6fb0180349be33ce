"""Auth domain exceptions.

Authentication and authorization failures specific to the auth routes.
"""

from warden.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    BadRequestError,
    InvalidCredentialsError,
)


class SocialOnlyAccountError(InvalidCredentialsError):
    """Raised when a password login targets an account without a password."""

    error_type = "social_only"

    def __init__(
        self,
        message: str = "This account signs in with a social provider",
    ):
        super().__init__(message)


class AdminRequiredError(AuthorizationError):
    """Raised when admin privileges are required."""

    error_type = "admin_required"

    def __init__(self, message: str = "Admin privileges required"):
        super().__init__(message)


class SecondFactorRequiredError(AuthorizationError):
    """Raised when a step-up operation needs 2FA but the user has none."""

    error_type = "second_factor_required"

    def __init__(self, message: str = "Two-factor authentication must be enabled"):
        super().__init__(message)


class InvalidSecondFactorError(AuthenticationError):
    """Raised when a step-up TOTP code is missing or wrong."""

    error_type = "invalid_2fa_code"

    def __init__(self, message: str = "Invalid two-factor code"):
        super().__init__(message)


class RecoveryTokenError(BadRequestError):
    """Raised when a verification or reset token is unknown or consumed."""

    error_type = "invalid_token"

    def __init__(self, message: str = "Invalid or expired token"):
        super().__init__(message)


class RecoveryTokenExpiredError(RecoveryTokenError):
    """Raised when a verification or reset token is past its expiry."""

    error_type = "token_expired"

    def __init__(self, message: str = "Token has expired"):
        super().__init__(message)
