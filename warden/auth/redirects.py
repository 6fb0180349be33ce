"""Browser redirects back to the web client."""

from urllib.parse import urlencode

from fastapi import Request
from fastapi.responses import RedirectResponse

from warden.core.settings import Settings

LOGIN_PAGE = "login.html"


def wants_html(request: Request) -> bool:
    """True for browser navigations (Accept includes text/html)."""
    return "text/html" in request.headers.get("accept", "")


def client_login_url(settings: Settings, **params: str) -> str:
    base = f"{settings.client_url.rstrip('/')}/{LOGIN_PAGE}"
    return f"{base}?{urlencode(params)}" if params else base


def client_redirect(settings: Settings, **params: str) -> RedirectResponse:
    return RedirectResponse(client_login_url(settings, **params), status_code=302)


def error_redirect(settings: Settings, message: str) -> RedirectResponse:
    return client_redirect(settings, error=message)
