"""TOTP second factor.

Standard RFC 6238 codes: 30-second step, 6 digits, SHA-1, accepted one
step either side of the current one. Verification is stateless; a code
can be reused inside its own window.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from functools import lru_cache

import pyotp

from warden.user.models import User
from warden.user.repository import UserRepository

logger = logging.getLogger(__name__)

# 32 base32 characters encode 160 bits (20 bytes) of entropy.
SECRET_LENGTH = 32
VALID_WINDOW = 1


class EnrollmentOutcome(str, Enum):
    enabled = "ENABLED"
    invalid_code = "INVALID_CODE"


class CodeCheck(str, Enum):
    valid = "VALID"
    invalid = "INVALID"


@dataclass(frozen=True)
class Enrollment:
    secret: str
    provisioning_uri: str


def check_totp(secret: str | None, code: str, *, at: datetime | None = None) -> bool:
    """True when code matches secret within the tolerance window."""
    if not secret:
        return False
    code = code.strip().replace(" ", "")
    if not code.isdigit():
        return False
    try:
        return pyotp.TOTP(secret).verify(code, for_time=at, valid_window=VALID_WINDOW)
    except ValueError:
        # Undecodable base32 secret.
        return False


class SecondFactorManager:
    def __init__(self, issuer: str):
        self.issuer = issuer

    def enroll(self, repo: UserRepository, user: User) -> Enrollment:
        """Store a fresh pending secret; 2FA stays disabled until confirmed.

        Re-enrolling overwrites any earlier pending secret.
        """
        secret = pyotp.random_base32(length=SECRET_LENGTH)
        user.two_factor_secret = secret
        repo.save(user)
        uri = pyotp.TOTP(secret).provisioning_uri(
            name=user.email, issuer_name=self.issuer
        )
        logger.info("2FA enrollment started", extra={"user_id": user.id})
        return Enrollment(secret=secret, provisioning_uri=uri)

    def confirm_enroll(
        self, repo: UserRepository, user: User, code: str
    ) -> EnrollmentOutcome:
        if not check_totp(user.two_factor_secret, code):
            return EnrollmentOutcome.invalid_code
        user.two_factor_enabled = True
        repo.save(user)
        logger.info("2FA enabled", extra={"user_id": user.id})
        return EnrollmentOutcome.enabled

    def verify(self, user: User, code: str) -> CodeCheck:
        """Check a code for login completion or a step-up operation."""
        if check_totp(user.two_factor_secret, code):
            return CodeCheck.valid
        return CodeCheck.invalid

    def disable(self, repo: UserRepository, user: User) -> None:
        user.two_factor_enabled = False
        user.two_factor_secret = None
        repo.save(user)
        logger.info("2FA disabled", extra={"user_id": user.id})


@lru_cache
def get_second_factor_manager() -> SecondFactorManager:
    from warden.core.settings import get_settings

    return SecondFactorManager(issuer=get_settings().totp_issuer)
