"""Local credential authentication and the second-factor gate.

authenticate() never issues a token for an account with 2FA enabled; the
caller must finish with complete_two_factor().
"""

import logging
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache

from email_validator import EmailNotValidError, validate_email

from warden.auth.passwords import hash_password, validate_password, verify_password
from warden.auth.second_factor import (
    CodeCheck,
    SecondFactorManager,
    get_second_factor_manager,
)
from warden.auth.tokens import TokenIssuer, TokenPurpose, get_token_issuer
from warden.core.exceptions import InvalidCredentialsError, ValidationError
from warden.user.exceptions import EmailExistsError, UsernameExistsError
from warden.user.models import User
from warden.user.repository import UserRepository, normalize_email

logger = logging.getLogger(__name__)

MIN_USERNAME_LENGTH = 3
MAX_USERNAME_LENGTH = 50


class AuthOutcome(str, Enum):
    success = "SUCCESS"
    requires_2fa = "REQUIRES_2FA"
    invalid_credentials = "INVALID_CREDENTIALS"
    social_only = "SOCIAL_ONLY"


@dataclass(frozen=True)
class AuthResult:
    outcome: AuthOutcome
    user: User | None = None
    token: str | None = None


class CredentialAuthenticator:
    def __init__(
        self,
        tokens: TokenIssuer,
        second_factor: SecondFactorManager,
        reserved_email_domain: str | None = None,
    ):
        self.tokens = tokens
        self.second_factor = second_factor
        # Domain of the placeholder addresses given to social-only accounts.
        self.reserved_email_domain = (
            reserved_email_domain.lower() if reserved_email_domain else None
        )

    def issue_session(self, user: User) -> str:
        return self.tokens.issue(user.id, user.username, TokenPurpose.session)

    def authenticate(
        self, repo: UserRepository, email: str, password: str
    ) -> AuthResult:
        user = repo.get_by_email(email)
        if user is None:
            return AuthResult(AuthOutcome.invalid_credentials)

        # Checked before the password so the answer does not depend on it.
        if not user.has_password:
            return AuthResult(AuthOutcome.social_only, user)

        if not verify_password(password, user.password_hash):
            logger.info("Password mismatch", extra={"user_id": user.id})
            return AuthResult(AuthOutcome.invalid_credentials)

        if user.two_factor_enabled:
            return AuthResult(AuthOutcome.requires_2fa, user)

        return AuthResult(AuthOutcome.success, user, self.issue_session(user))

    def complete_two_factor(
        self, repo: UserRepository, email: str, code: str
    ) -> tuple[User, str]:
        """Finish a login that returned REQUIRES_2FA.

        Raises:
            InvalidCredentialsError: Unknown email, 2FA not enabled, or bad code.
        """
        user = repo.get_by_email(email)
        if user is None or not user.two_factor_enabled:
            raise InvalidCredentialsError("Invalid email or code")
        if self.second_factor.verify(user, code) is not CodeCheck.valid:
            logger.info("Invalid 2FA code at login", extra={"user_id": user.id})
            raise InvalidCredentialsError("Invalid email or code")
        return user, self.issue_session(user)

    def register(
        self, repo: UserRepository, username: str, email: str, password: str
    ) -> tuple[User, str]:
        """Create a local account and return it with a session token.

        Raises:
            ValidationError: Username, email or password fails policy, or the
                email is on the reserved placeholder domain.
            EmailExistsError, UsernameExistsError: Field already taken, either
                found up front or reported by the store's unique constraint.
        """
        username = username.strip()
        email = normalize_email(email)
        if not username or not email or not password:
            raise ValidationError("username, email and password are required")
        if len(username) < MIN_USERNAME_LENGTH:
            raise ValidationError(
                f"Username must be at least {MIN_USERNAME_LENGTH} characters"
            )
        if len(username) > MAX_USERNAME_LENGTH:
            raise ValidationError(
                f"Username must be at most {MAX_USERNAME_LENGTH} characters"
            )
        try:
            validate_email(email, check_deliverability=False)
        except EmailNotValidError as e:
            raise ValidationError("Invalid email address") from e
        if self.reserved_email_domain and email.endswith(
            f"@{self.reserved_email_domain}"
        ):
            raise ValidationError("This email domain is reserved")
        validate_password(password)

        if repo.get_by_email(email) is not None:
            raise EmailExistsError()
        if repo.get_by_username(username) is not None:
            raise UsernameExistsError()

        user = User(
            username=username,
            email=email,
            password_hash=hash_password(password),
            email_verified=False,
        )
        repo.save(user)
        logger.info("Registered local account", extra={"user_id": user.id})
        return user, self.issue_session(user)


@lru_cache
def get_credential_authenticator() -> CredentialAuthenticator:
    from warden.core.settings import get_settings

    return CredentialAuthenticator(
        get_token_issuer(),
        get_second_factor_manager(),
        reserved_email_domain=get_settings().placeholder_email_domain,
    )
