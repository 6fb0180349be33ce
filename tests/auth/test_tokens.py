"""Tests for warden/auth/tokens.py - signed session and link tokens."""

import uuid
from datetime import UTC, datetime, timedelta

import jwt
import pytest
from hypothesis import given
from hypothesis import settings as hypothesis_settings
from hypothesis import strategies as st

from warden.auth.tokens import ALGORITHM, TokenIssuer, TokenPurpose
from warden.core.exceptions import InvalidTokenError

SECRET = "unit-test-secret-0123456789"


@pytest.fixture
def issuer() -> TokenIssuer:
    return TokenIssuer(SECRET)


class TestIssueAndVerify:
    def test_session_token_round_trip(self, issuer):
        """Test a session token verifies to the claims it was issued with."""
        user_id = uuid.uuid4()
        token = issuer.issue(user_id, "alice")

        claims = issuer.verify(token)

        assert claims.subject_id == user_id
        assert claims.username == "alice"
        assert claims.purpose is TokenPurpose.session

    def test_session_lifetime_is_seven_days(self, issuer):
        """Test the default session lifetime."""
        now = datetime.now(UTC).replace(microsecond=0)
        token = issuer.issue(uuid.uuid4(), "alice", now=now)

        claims = issuer.verify(token)

        assert claims.issued_at == now
        assert claims.expires_at - claims.issued_at == timedelta(days=7)

    def test_link_lifetime_is_ten_minutes(self, issuer):
        """Test linking-intent tokens are short-lived."""
        token = issuer.issue(uuid.uuid4(), "alice", TokenPurpose.link)

        claims = issuer.verify(token, TokenPurpose.link)

        assert claims.expires_at - claims.issued_at == timedelta(minutes=10)

    @hypothesis_settings(max_examples=30)
    @given(username=st.text(min_size=1, max_size=50))
    def test_username_survives_round_trip(self, username):
        """Property: any username comes back unchanged."""
        issuer = TokenIssuer(SECRET)
        token = issuer.issue(uuid.uuid4(), username)
        assert issuer.verify(token).username == username


class TestRejection:
    def test_expired_token(self, issuer):
        """Test tokens past their expiry are rejected."""
        past = datetime.now(UTC) - timedelta(days=8)
        token = issuer.issue(uuid.uuid4(), "alice", now=past)

        with pytest.raises(InvalidTokenError, match="expired"):
            issuer.verify(token)

    def test_link_token_is_not_a_session(self, issuer):
        """Test a linking-intent token cannot be used as a bearer token."""
        token = issuer.issue(uuid.uuid4(), "alice", TokenPurpose.link)

        with pytest.raises(InvalidTokenError):
            issuer.verify(token, TokenPurpose.session)

    def test_session_token_is_not_a_link(self, issuer):
        """Test a session token cannot be used as linking intent."""
        token = issuer.issue(uuid.uuid4(), "alice")

        with pytest.raises(InvalidTokenError):
            issuer.verify(token, TokenPurpose.link)

    def test_wrong_secret(self, issuer):
        """Test tokens signed with another key are rejected."""
        token = TokenIssuer("another-secret-0123456789").issue(uuid.uuid4(), "a")

        with pytest.raises(InvalidTokenError):
            issuer.verify(token)

    def test_tampered_payload(self, issuer):
        """Test a payload swapped under another token's signature is rejected."""
        header, _, signature = issuer.issue(uuid.uuid4(), "alice").split(".")
        _, payload, _ = issuer.issue(uuid.uuid4(), "mallory").split(".")
        tampered = f"{header}.{payload}.{signature}"

        with pytest.raises(InvalidTokenError):
            issuer.verify(tampered)

    def test_garbage(self, issuer):
        with pytest.raises(InvalidTokenError):
            issuer.verify("not-a-token")

    def test_missing_purpose_claim(self, issuer):
        """Test a correctly signed token without a purpose is rejected."""
        now = datetime.now(UTC)
        token = jwt.encode(
            {
                "sub": str(uuid.uuid4()),
                "username": "alice",
                "iat": now,
                "exp": now + timedelta(hours=1),
            },
            SECRET,
            algorithm=ALGORITHM,
        )

        with pytest.raises(InvalidTokenError):
            issuer.verify(token)

    def test_malformed_subject(self, issuer):
        """Test a correctly signed token with a non-UUID subject is rejected."""
        now = datetime.now(UTC)
        token = jwt.encode(
            {
                "sub": "not-a-uuid",
                "username": "alice",
                "purpose": "session",
                "iat": now,
                "exp": now + timedelta(hours=1),
            },
            SECRET,
            algorithm=ALGORITHM,
        )

        with pytest.raises(InvalidTokenError):
            issuer.verify(token)


class TestVerifyOrNone:
    def test_none_and_empty(self, issuer):
        assert issuer.verify_or_none(None, TokenPurpose.link) is None
        assert issuer.verify_or_none("", TokenPurpose.link) is None

    def test_invalid_token(self, issuer):
        assert issuer.verify_or_none("garbage", TokenPurpose.link) is None

    def test_valid_token(self, issuer):
        user_id = uuid.uuid4()
        token = issuer.issue(user_id, "alice", TokenPurpose.link)

        claims = issuer.verify_or_none(token, TokenPurpose.link)

        assert claims is not None
        assert claims.subject_id == user_id
