"""Tests for warden/auth/passwords.py - bcrypt hashing and password policy."""

import pytest

from warden.auth.passwords import (
    BCRYPT_MAX_BYTES,
    hash_password,
    validate_password,
    verify_password,
)
from warden.core.exceptions import ValidationError


def test_hash_and_verify():
    """Test a hashed password verifies and a different one does not."""
    hashed = hash_password("secret123")

    assert hashed != "secret123"
    assert hashed.startswith("$2")
    assert verify_password("secret123", hashed) is True
    assert verify_password("secret124", hashed) is False


def test_hashes_are_salted():
    assert hash_password("secret123") != hash_password("secret123")


def test_missing_hash_never_matches():
    assert verify_password("anything", None) is False
    assert verify_password("", "") is False


def test_corrupt_hash_never_matches():
    """Test an unparseable stored hash is treated as a mismatch."""
    assert verify_password("secret123", "not-a-bcrypt-hash") is False


def test_long_passwords_are_truncated_consistently():
    """Test passwords over the bcrypt limit hash and verify without error."""
    password = "x" * (BCRYPT_MAX_BYTES + 20)
    hashed = hash_password(password)

    assert verify_password(password, hashed) is True
    # Only the first 72 bytes take part in the comparison.
    assert verify_password("x" * BCRYPT_MAX_BYTES + "different", hashed) is True


@pytest.mark.parametrize("password", ["secret", "a" * 128, "pässwörd"])
def test_validate_password_accepts(password):
    validate_password(password)


@pytest.mark.parametrize("password", ["", "12345", "a" * 129])
def test_validate_password_rejects(password):
    with pytest.raises(ValidationError):
        validate_password(password)
