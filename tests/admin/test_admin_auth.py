"""Tests for warden/admin/auth.py - SQLAdmin authentication."""

import uuid
from unittest.mock import MagicMock

import pyotp
import pytest
from sqlmodel import Session

from warden.admin.auth import SESSION_KEY, AdminAuth
from warden.user.models import UserRole

TEST_PASSWORD = "secret123"


@pytest.fixture
def admin_auth(engine):
    """AdminAuth reading from the test database."""
    return AdminAuth(session_factory=lambda: Session(engine))


@pytest.fixture
def mock_request():
    """Create a mock Starlette request with session."""
    request = MagicMock()
    request.session = {}
    return request


def with_form(request, **fields):
    async def mock_form():
        return fields

    request.form = mock_form
    return request


@pytest.mark.asyncio
async def test_admin_login_success(admin_auth, mock_request, admin_user):
    with_form(mock_request, username="root@example.com", password=TEST_PASSWORD)

    result = await admin_auth.login(mock_request)

    assert result is True
    assert mock_request.session[SESSION_KEY] == str(admin_user.id)


@pytest.mark.asyncio
async def test_admin_login_with_email_field(admin_auth, mock_request, admin_user):
    """Test the email form field is accepted when username is absent."""
    with_form(mock_request, email="root@example.com", password=TEST_PASSWORD)

    assert await admin_auth.login(mock_request) is True


@pytest.mark.asyncio
async def test_admin_login_wrong_password(admin_auth, mock_request, admin_user):
    with_form(mock_request, username="root@example.com", password="wrong-password")

    result = await admin_auth.login(mock_request)

    assert result is False
    assert SESSION_KEY not in mock_request.session


@pytest.mark.asyncio
async def test_admin_login_regular_user(admin_auth, mock_request, test_user):
    """Test a valid login without the admin role is refused."""
    with_form(mock_request, username="alice@example.com", password=TEST_PASSWORD)

    assert await admin_auth.login(mock_request) is False
    assert SESSION_KEY not in mock_request.session


@pytest.mark.asyncio
async def test_admin_login_refuses_2fa_account(
    admin_auth, mock_request, admin_user, repo, second_factor
):
    enrollment = second_factor.enroll(repo, admin_user)
    second_factor.confirm_enroll(
        repo, admin_user, pyotp.TOTP(enrollment.secret).now()
    )
    with_form(mock_request, username="root@example.com", password=TEST_PASSWORD)

    assert await admin_auth.login(mock_request) is False


@pytest.mark.asyncio
async def test_admin_logout(admin_auth, mock_request):
    """Test AdminAuth.logout() clears session and returns True."""
    mock_request.session[SESSION_KEY] = str(uuid.uuid4())
    mock_request.session["other_data"] = "test"

    result = await admin_auth.logout(mock_request)

    assert result is True
    assert mock_request.session == {}


@pytest.mark.asyncio
async def test_admin_authenticate_with_session(admin_auth, mock_request, admin_user):
    mock_request.session[SESSION_KEY] = str(admin_user.id)

    assert await admin_auth.authenticate(mock_request) is True


@pytest.mark.asyncio
async def test_admin_authenticate_without_session(admin_auth, mock_request):
    assert await admin_auth.authenticate(mock_request) is False


@pytest.mark.asyncio
async def test_admin_authenticate_demoted_user(
    admin_auth, mock_request, admin_user, repo
):
    """Test a stored session stops working once the role is removed."""
    mock_request.session[SESSION_KEY] = str(admin_user.id)
    admin_user.role = UserRole.user
    repo.save(admin_user)

    assert await admin_auth.authenticate(mock_request) is False


@pytest.mark.asyncio
async def test_admin_authenticate_bad_session_value(admin_auth, mock_request):
    mock_request.session[SESSION_KEY] = "not-a-uuid"

    assert await admin_auth.authenticate(mock_request) is False
