"""Password hashing and policy.

bcrypt only looks at the first 72 bytes of a password, and recent
releases raise on longer input, so hashing and checking both truncate.
"""

import bcrypt

from warden.core.exceptions import ValidationError

BCRYPT_ROUNDS = 10
BCRYPT_MAX_BYTES = 72
MIN_PASSWORD_LENGTH = 6
MAX_PASSWORD_LENGTH = 128


def _encode(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(password: str) -> str:
    return bcrypt.hashpw(_encode(password), bcrypt.gensalt(BCRYPT_ROUNDS)).decode(
        "utf-8"
    )


def verify_password(password: str, password_hash: str | None) -> bool:
    """Compare a candidate password with a stored hash.

    A missing or corrupt hash never matches.
    """
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(_encode(password), password_hash.encode("utf-8"))
    except ValueError:
        return False


def validate_password(password: str) -> None:
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
        )
    if len(password) > MAX_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be at most {MAX_PASSWORD_LENGTH} characters"
        )
