"""HTTP request/response logging middleware."""

from __future__ import annotations

import logging
import time
from typing import Any
from urllib.parse import parse_qsl, urlencode

from fastapi import FastAPI
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from warden.core.logging import env_bool

# Query parameters that carry bearer, linking-intent or OAuth secrets.
REDACTED_QUERY_PARAMS = frozenset({"token", "code", "state"})
REDACTED = "***"


def redact_query(query: str) -> str:
    """Replace secret-bearing query parameter values with a placeholder."""
    if not query:
        return ""
    pairs = parse_qsl(query, keep_blank_values=True)
    return urlencode(
        [(k, REDACTED if k in REDACTED_QUERY_PARAMS else v) for k, v in pairs],
        safe="*",
    )


def redact_path(path: str) -> str:
    """Hide the token segment of /verify-email/<token> style paths."""
    head, sep, tail = path.rpartition("/verify-email/")
    if sep and tail and tail != "resend":
        return f"{head}{sep}{REDACTED}"
    return path


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: FastAPI) -> None:
        super().__init__(app)
        self.logger = logging.getLogger("warden.request")

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        start = time.perf_counter()
        response: Response | None = None
        try:
            response = await call_next(request)
            return response
        finally:
            duration_ms = (time.perf_counter() - start) * 1000.0

            status_code: int | None = response.status_code if response else None
            path = redact_path(request.url.path)
            query = redact_query(request.url.query)

            extra: dict[str, Any] = {
                "method": request.method,
                "path": path,
                "query": query,
                "status_code": status_code,
                "duration_ms": round(duration_ms, 2),
                "client_ip": request.client.host if request.client else None,
                "user_agent": request.headers.get("user-agent"),
            }

            if status_code is None or status_code >= 500:
                log = self.logger.error
            else:
                log = self.logger.info

            log(
                "%s %s%s -> %s (%.2fms)",
                request.method,
                path,
                f"?{query}" if query else "",
                status_code,
                duration_ms,
                extra=extra,
            )


def add_request_logging_middleware(app: FastAPI) -> None:
    """Attach request logging middleware (enabled by default)."""

    if not env_bool("LOG_REQUESTS", default=True):
        return
    app.add_middleware(RequestLoggingMiddleware)
