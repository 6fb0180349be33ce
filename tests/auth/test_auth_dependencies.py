"""Tests for warden/auth/dependencies.py - bearer authentication."""

import uuid

import pytest
from fastapi.security import HTTPAuthorizationCredentials

from warden.auth.dependencies import get_admin_user, get_current_user
from warden.auth.exceptions import AdminRequiredError
from warden.auth.tokens import TokenPurpose
from warden.core.exceptions import InvalidCredentialsError, InvalidTokenError
from warden.user.exceptions import UserNotFoundError


def bearer(token: str) -> HTTPAuthorizationCredentials:
    return HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)


def test_no_credentials(repo, tokens):
    with pytest.raises(InvalidCredentialsError):
        get_current_user(repo, tokens, None)


def test_valid_session_token(repo, tokens, test_user):
    token = tokens.issue(test_user.id, test_user.username)

    user = get_current_user(repo, tokens, bearer(token))

    assert user.id == test_user.id


def test_link_token_rejected(repo, tokens, test_user):
    token = tokens.issue(test_user.id, test_user.username, TokenPurpose.link)

    with pytest.raises(InvalidTokenError):
        get_current_user(repo, tokens, bearer(token))


def test_unknown_subject(repo, tokens):
    token = tokens.issue(uuid.uuid4(), "ghost")

    with pytest.raises(UserNotFoundError):
        get_current_user(repo, tokens, bearer(token))


def test_admin_user_passes(admin_user):
    assert get_admin_user(admin_user) is admin_user


def test_regular_user_is_not_admin(test_user):
    with pytest.raises(AdminRequiredError):
        get_admin_user(test_user)
