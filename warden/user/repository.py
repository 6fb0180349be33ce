"""User store access.

Thin wrapper over a SQLModel session. The database's unique constraints
are the only concurrency arbiter: a violated constraint is rolled back and
re-raised as a ConflictError naming the offending field.
"""

import logging
import re
import uuid

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from warden.core.exceptions import ConflictError
from warden.user.exceptions import (
    EmailExistsError,
    ProviderIdExistsError,
    UsernameExistsError,
)
from warden.user.models import Provider, User

logger = logging.getLogger(__name__)

RECOVERY_TOKEN_FIELDS = frozenset({"email_verification_token", "reset_password_token"})


def normalize_email(email: str) -> str:
    return email.strip().lower()


# Column names only; PostgreSQL also echoes the offending value, which must
# never be matched.
CONFLICT_COLUMN_PATTERNS = (
    # MySQL: Duplicate entry '...' for key 'users.ix_users_email' (key comes last)
    re.compile(r"for key '(?:users\.)?(?:ix_users_)?(\w+)'\W*$"),
    # PostgreSQL: DETAIL:  Key (email)=(...) already exists.
    re.compile(r"DETAIL:\s+Key \((\w+)\)="),
    # SQLite: UNIQUE constraint failed: users.email
    re.compile(r"UNIQUE constraint failed: users\.(\w+)"),
    # PostgreSQL without DETAIL: constraint "ix_users_email" or "users_google_id_key"
    re.compile(r'constraint "(?:ix_users_(\w+)|users_(\w+)_key)"'),
)


def conflicting_column(message: str) -> str | None:
    """Extract the column named by a unique-violation message, if any."""
    for pattern in CONFLICT_COLUMN_PATTERNS:
        match = pattern.search(message)
        if match:
            return next(group for group in match.groups() if group)
    return None


def conflict_from_integrity_error(exc: IntegrityError) -> ConflictError:
    """Map a unique-constraint violation to a field-named ConflictError.

    Understands the SQLite, PostgreSQL and MySQL message formats.
    """
    message = str(exc.orig) if exc.orig is not None else str(exc)
    column = conflicting_column(message)
    if column in {provider.id_field for provider in Provider}:
        return ProviderIdExistsError(column)
    if column == "username":
        return UsernameExistsError()
    if column == "email":
        return EmailExistsError()
    return ConflictError("A user with these details already exists")


class UserRepository:
    def __init__(self, session: Session):
        self.session = session

    def get(self, user_id: uuid.UUID) -> User | None:
        return self.session.get(User, user_id)

    def get_by_email(self, email: str) -> User | None:
        return self.session.exec(
            select(User).where(User.email == normalize_email(email))
        ).first()

    def get_by_username(self, username: str) -> User | None:
        return self.session.exec(select(User).where(User.username == username)).first()

    def get_by_provider_id(self, provider: Provider, external_id: str) -> User | None:
        column = getattr(User, provider.id_field)
        return self.session.exec(select(User).where(column == external_id)).first()

    def get_by_recovery_token(self, field: str, token: str) -> User | None:
        if field not in RECOVERY_TOKEN_FIELDS:
            raise ValueError(f"not a recovery token field: {field}")
        column = getattr(User, field)
        return self.session.exec(select(User).where(column == token)).first()

    def save(self, user: User) -> User:
        """Write one row atomically; unique violations become ConflictErrors."""
        self.session.add(user)
        try:
            self.session.commit()
        except IntegrityError as e:
            self.session.rollback()
            conflict = conflict_from_integrity_error(e)
            logger.info("Unique constraint violated on %s", conflict.field)
            raise conflict from e
        self.session.refresh(user)
        return user
