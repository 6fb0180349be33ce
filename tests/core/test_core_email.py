"""Tests for warden/core/email.py - outbound mail."""

from unittest.mock import patch

import pytest

from warden.core import email as email_module


@pytest.fixture
def mail_settings(test_settings):
    """Settings with Resend delivery switched on."""
    settings = test_settings.model_copy(update={"resend_api_key": "re_test"})
    with patch("warden.core.email.get_settings", return_value=settings):
        yield settings


def test_init_resend(mail_settings):
    with patch("warden.core.email.resend") as mock_resend:
        email_module.init_resend()

    assert mock_resend.api_key == "re_test"


def test_send_verification_email(mail_settings):
    with patch("warden.core.email.resend.Emails.send") as mock_send:
        sent = email_module.send_email_verification_email(
            "bob@example.com", "bob", "tok123"
        )

    assert sent is True
    message = mock_send.call_args[0][0]
    assert message["from"] == mail_settings.mail_from
    assert message["to"] == "bob@example.com"
    assert message["subject"] == "Verify your email"
    assert "Hi bob" in message["html"]
    assert "http://api.test/api/auth/verify-email/tok123" in message["html"]


def test_send_password_reset_email(mail_settings):
    with patch("warden.core.email.resend.Emails.send") as mock_send:
        email_module.send_password_reset_email("bob@example.com", "tok456")

    message = mock_send.call_args[0][0]
    assert message["subject"] == "Reset your password"
    assert "http://client.test/reset-password.html?token=tok456" in message["html"]


def test_delivery_failure_is_swallowed(mail_settings):
    """Test a Resend error is logged and reported as not sent."""
    with patch(
        "warden.core.email.resend.Emails.send", side_effect=RuntimeError("down")
    ):
        sent = email_module.send_password_reset_email("bob@example.com", "tok")

    assert sent is False


def test_no_api_key_skips_delivery(test_settings):
    with (
        patch("warden.core.email.get_settings", return_value=test_settings),
        patch("warden.core.email.resend.Emails.send") as mock_send,
    ):
        sent = email_module.send_password_reset_email("bob@example.com", "tok")

    assert sent is False
    mock_send.assert_not_called()


def test_token_is_url_quoted(mail_settings):
    assert email_module.verification_url("a b").endswith("/verify-email/a%20b")
