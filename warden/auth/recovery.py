"""Single-use, time-limited recovery tokens.

Two kinds share one mechanism: email verification and password reset.
Each kind has its own token/expiry column pair on the user row, so issuing
a new token silently replaces the previous one of the same kind, and
consuming a token clears it.
"""

import logging
import secrets
from dataclasses import dataclass
from datetime import timedelta
from enum import Enum
from functools import lru_cache

from warden.auth.passwords import hash_password, validate_password
from warden.core.mixins import as_utc, utc_now
from warden.user.models import User
from warden.user.repository import UserRepository

logger = logging.getLogger(__name__)

TOKEN_BYTES = 24


class RecoveryKind(str, Enum):
    email_verify = "EMAIL_VERIFY"
    password_reset = "PASSWORD_RESET"

    @property
    def token_field(self) -> str:
        if self is RecoveryKind.email_verify:
            return "email_verification_token"
        return "reset_password_token"

    @property
    def expires_field(self) -> str:
        if self is RecoveryKind.email_verify:
            return "email_verification_expires"
        return "reset_password_expires"


class ConsumeOutcome(str, Enum):
    success = "SUCCESS"
    not_found = "NOT_FOUND"
    expired = "EXPIRED"


@dataclass(frozen=True)
class ConsumeResult:
    outcome: ConsumeOutcome
    user: User | None = None

    @property
    def ok(self) -> bool:
        return self.outcome is ConsumeOutcome.success


class RecoveryTokenManager:
    def __init__(
        self,
        email_verify_expires_in: timedelta = timedelta(hours=24),
        password_reset_expires_in: timedelta = timedelta(minutes=30),
    ):
        self._lifetimes = {
            RecoveryKind.email_verify: email_verify_expires_in,
            RecoveryKind.password_reset: password_reset_expires_in,
        }

    def issue(self, repo: UserRepository, kind: RecoveryKind, user: User) -> str:
        token = secrets.token_hex(TOKEN_BYTES)
        setattr(user, kind.token_field, token)
        setattr(user, kind.expires_field, utc_now() + self._lifetimes[kind])
        repo.save(user)
        logger.info("Issued %s token", kind.value, extra={"user_id": user.id})
        return token

    def consume(
        self,
        repo: UserRepository,
        kind: RecoveryKind,
        token: str,
        new_password: str | None = None,
    ) -> ConsumeResult:
        """Redeem a token.

        An expired token is left in place (not cleared); the user has to ask
        for a new one. PASSWORD_RESET requires new_password.
        """
        if kind is RecoveryKind.password_reset:
            if new_password is None:
                raise ValueError("new_password is required for PASSWORD_RESET")
            validate_password(new_password)

        if not token:
            return ConsumeResult(ConsumeOutcome.not_found)
        user = repo.get_by_recovery_token(kind.token_field, token)
        if user is None:
            return ConsumeResult(ConsumeOutcome.not_found)

        expires = getattr(user, kind.expires_field)
        if expires is not None and as_utc(expires) < utc_now():
            return ConsumeResult(ConsumeOutcome.expired, user)

        if kind is RecoveryKind.email_verify:
            user.email_verified = True
        else:
            user.password_hash = hash_password(new_password)
        setattr(user, kind.token_field, None)
        setattr(user, kind.expires_field, None)
        repo.save(user)
        logger.info("Consumed %s token", kind.value, extra={"user_id": user.id})
        return ConsumeResult(ConsumeOutcome.success, user)


@lru_cache
def get_recovery_token_manager() -> RecoveryTokenManager:
    from warden.core.settings import get_settings

    settings = get_settings()
    return RecoveryTokenManager(
        email_verify_expires_in=timedelta(hours=settings.email_verify_expires_hours),
        password_reset_expires_in=timedelta(
            minutes=settings.password_reset_expires_minutes
        ),
    )
