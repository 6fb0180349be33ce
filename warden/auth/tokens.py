"""Signed bearer tokens.

One HS256 key signs two kinds of token: session bearer tokens and
linking-intent tokens carried through the OAuth redirect. Every token
records its purpose and verify() only accepts the purpose it is asked for,
so a linking-intent token can never be replayed as a session.
"""

import uuid
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from enum import Enum
from functools import lru_cache

import jwt

from warden.core.exceptions import InvalidTokenError

ALGORITHM = "HS256"
REQUIRED_CLAIMS = ["sub", "username", "purpose", "iat", "exp"]


class TokenPurpose(str, Enum):
    session = "session"
    link = "link"


@dataclass(frozen=True)
class TokenClaims:
    """Decoded and verified token claims."""

    subject_id: uuid.UUID
    username: str
    purpose: TokenPurpose
    issued_at: datetime
    expires_at: datetime


class TokenIssuer:
    """Issues and verifies time-bounded signed tokens."""

    def __init__(
        self,
        secret: str,
        session_expires_in: timedelta = timedelta(days=7),
        link_expires_in: timedelta = timedelta(minutes=10),
    ):
        self._secret = secret
        self._lifetimes = {
            TokenPurpose.session: session_expires_in,
            TokenPurpose.link: link_expires_in,
        }

    def issue(
        self,
        subject_id: uuid.UUID,
        username: str,
        purpose: TokenPurpose = TokenPurpose.session,
        *,
        now: datetime | None = None,
    ) -> str:
        """Sign {subject, username, purpose} with the purpose's fixed lifetime."""
        issued_at = (now or datetime.now(UTC)).replace(microsecond=0)
        payload = {
            "sub": str(subject_id),
            "username": username,
            "purpose": purpose.value,
            "iat": issued_at,
            "exp": issued_at + self._lifetimes[purpose],
        }
        return jwt.encode(payload, self._secret, algorithm=ALGORITHM)

    def verify(
        self, token: str, purpose: TokenPurpose = TokenPurpose.session
    ) -> TokenClaims:
        """Verify signature, expiry and purpose.

        Raises:
            InvalidTokenError: On any failure; the cause is chained, never shown.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[ALGORITHM],
                options={"require": REQUIRED_CLAIMS},
            )
            claims = TokenClaims(
                subject_id=uuid.UUID(payload["sub"]),
                username=str(payload["username"]),
                purpose=TokenPurpose(payload["purpose"]),
                issued_at=datetime.fromtimestamp(payload["iat"], tz=UTC),
                expires_at=datetime.fromtimestamp(payload["exp"], tz=UTC),
            )
        except jwt.ExpiredSignatureError as e:
            raise InvalidTokenError("Token has expired") from e
        except (jwt.InvalidTokenError, ValueError, TypeError) as e:
            raise InvalidTokenError() from e

        if claims.purpose != purpose:
            raise InvalidTokenError("Token was not issued for this purpose")
        return claims

    def verify_or_none(
        self, token: str | None, purpose: TokenPurpose
    ) -> TokenClaims | None:
        """Like verify(), but a missing or bad token yields None."""
        if not token:
            return None
        try:
            return self.verify(token, purpose)
        except InvalidTokenError:
            return None


@lru_cache
def get_token_issuer() -> TokenIssuer:
    """Get the process-wide TokenIssuer built from settings."""
    from warden.core.settings import get_settings

    settings = get_settings()
    return TokenIssuer(
        secret=settings.jwt_secret,
        session_expires_in=settings.session_expires_in,
        link_expires_in=settings.link_token_expires_in,
    )
