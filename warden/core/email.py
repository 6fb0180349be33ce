"""Outbound account email via Resend.

Sending is fire-and-forget: a delivery failure is logged and swallowed so
that callers behave the same whether or not an address is registered.
"""

import logging
from urllib.parse import quote

import resend

from warden.core.constants import JinjaEmailTemplatesEnv
from warden.core.settings import get_settings

logger = logging.getLogger(__name__)


def _render_template(template_name: str, **context: str) -> str:
    """Render an email template from warden/templates/emails."""
    template = JinjaEmailTemplatesEnv.get_template(template_name)
    return template.render(**context)


def init_resend() -> None:
    """Initialize Resend with API key if available."""
    settings = get_settings()
    if not settings.resend_api_key:
        return
    resend.api_key = settings.resend_api_key


def _send(to_email: str, subject: str, html: str) -> bool:
    """Send one message; returns False instead of raising on any failure."""
    settings = get_settings()
    if not settings.resend_api_key:
        logger.debug("Mail delivery disabled, skipping %r", subject)
        return False
    try:
        resend.Emails.send(
            {
                "from": settings.mail_from,
                "to": to_email,
                "subject": subject,
                "html": html,
            }
        )
    except Exception:
        logger.warning("Mail delivery failed for %r", subject, exc_info=True)
        return False
    return True


def verification_url(token: str) -> str:
    settings = get_settings()
    return f"{settings.public_backend_url}/api/auth/verify-email/{quote(token)}"


def password_reset_url(token: str) -> str:
    settings = get_settings()
    return f"{settings.client_url}/reset-password.html?token={quote(token)}"


def send_email_verification_email(to_email: str, username: str, token: str) -> bool:
    """Send the email verification link (also shows the raw token as a code)."""
    html_content = _render_template(
        "email-verification.html",
        username=username,
        verification_url=verification_url(token),
        token=token,
    )
    return _send(to_email, "Verify your email", html_content)


def send_password_reset_email(to_email: str, token: str) -> bool:
    """Send the password reset link."""
    html_content = _render_template(
        "password-reset.html",
        reset_url=password_reset_url(token),
        token=token,
    )
    return _send(to_email, "Reset your password", html_content)
