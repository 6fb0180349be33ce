"""
App-wide constants for route configuration and email templates.

Single source of truth for route prefixes, tags, and common response
definitions for API routes.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, select_autoescape


@dataclass(frozen=True)
class RouteConfig:
    """Configuration for a route group."""

    prefix: str
    tag: str


class Routes:
    """Route configurations for all API endpoints."""

    AUTH = RouteConfig(prefix="/api/auth", tag="auth")
    OAUTH = RouteConfig(prefix="/api/auth", tag="oauth")
    USER = RouteConfig(prefix="/api/auth", tag="users")
    ADMIN = RouteConfig(prefix="/api/admin", tag="admin")
    HEALTH = RouteConfig(prefix="/health", tag="health")


class CommonResponses:
    """Standard HTTP error response definitions for OpenAPI documentation."""

    UNAUTHORIZED: dict[int, dict[str, Any]] = {
        401: {"description": "Not authenticated or invalid credentials"}
    }
    FORBIDDEN: dict[int, dict[str, Any]] = {
        403: {"description": "Lacks role or second factor"}
    }
    NOT_FOUND: dict[int, dict[str, Any]] = {404: {"description": "Resource not found"}}
    BAD_REQUEST: dict[int, dict[str, Any]] = {
        400: {"description": "Invalid request data, invalid token, or conflict"}
    }
    NOT_CONFIGURED: dict[int, dict[str, Any]] = {
        503: {"description": "OAuth provider not configured"}
    }


EmailTemplatesDir = Path(__file__).parent.parent / "templates" / "emails"

JinjaEmailTemplatesEnv = Environment(
    loader=FileSystemLoader(str(EmailTemplatesDir)),
    autoescape=select_autoescape(["html", "xml"]),
)
