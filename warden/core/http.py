"""HTTP client factory for OAuth provider calls.

One pooled client is shared by every provider; it is created lazily and
closed from the application lifespan.
"""

import httpx

# Default timeout configuration (seconds)
DEFAULT_CONNECT_TIMEOUT = 5.0
DEFAULT_READ_TIMEOUT = 10.0
DEFAULT_WRITE_TIMEOUT = 10.0
DEFAULT_POOL_TIMEOUT = 5.0

USER_AGENT = "warden-oauth/0.1"

_oauth_client: httpx.AsyncClient | None = None


def create_http_client(
    max_connections: int = 20,
    max_keepalive_connections: int = 10,
    connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
    read_timeout: float = DEFAULT_READ_TIMEOUT,
    write_timeout: float = DEFAULT_WRITE_TIMEOUT,
    pool_timeout: float = DEFAULT_POOL_TIMEOUT,
) -> httpx.AsyncClient:
    """Create a configured async HTTP client.

    Provider endpoints live on different hosts, so no base_url is set.
    GitHub rejects requests without a User-Agent header.
    """
    return httpx.AsyncClient(
        headers={"User-Agent": USER_AGENT, "Accept": "application/json"},
        timeout=httpx.Timeout(
            connect=connect_timeout,
            read=read_timeout,
            write=write_timeout,
            pool=pool_timeout,
        ),
        limits=httpx.Limits(
            max_connections=max_connections,
            max_keepalive_connections=max_keepalive_connections,
        ),
    )


def get_oauth_client() -> httpx.AsyncClient:
    """Get the shared HTTP client for provider token and profile calls."""
    global _oauth_client
    if _oauth_client is None:
        _oauth_client = create_http_client(
            max_connections=50,
            max_keepalive_connections=10,
        )
    return _oauth_client


async def close_oauth_client() -> None:
    """Close the shared OAuth client; called during application shutdown."""
    global _oauth_client
    if _oauth_client is not None:
        await _oauth_client.aclose()
        _oauth_client = None
