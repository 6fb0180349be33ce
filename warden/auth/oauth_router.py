"""Social login routes.

GET /{provider} sends the browser to the provider's consent page; the
provider sends it back to /{provider}/callback, which reconciles the
profile with a local account and redirects to the web client with a
session token. Passing ?token=<session token> on the first hop links the
provider to that signed-in account instead.

This router must be included after every router that owns fixed
single-segment paths under the same prefix.
"""

import logging

from fastapi import APIRouter, Request
from fastapi.responses import RedirectResponse

from warden.auth.dependencies import (
    AuthenticatorDep,
    LinkerDep,
    ProvidersDep,
    TokenIssuerDep,
)
from warden.auth.providers import OAuthProvider, ProviderRegistry
from warden.auth.redirects import client_redirect, error_redirect, wants_html
from warden.auth.schemas import ProviderAvailability
from warden.auth.tokens import TokenPurpose
from warden.core.constants import CommonResponses, Routes
from warden.core.deps import SettingsDep, UserRepoDep
from warden.core.exceptions import ConflictError, NotConfiguredError, ProviderError
from warden.core.settings import Settings

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix=Routes.OAUTH.prefix,
    tags=[Routes.OAUTH.tag],
    responses={**CommonResponses.NOT_FOUND, **CommonResponses.NOT_CONFIGURED},
)


def callback_url(settings: Settings, provider_name: str) -> str:
    base = settings.public_backend_url.rstrip("/")
    return f"{base}{Routes.OAUTH.prefix}/{provider_name}/callback"


def _enabled_provider(
    registry: ProviderRegistry, name: str, request: Request, settings: Settings
) -> OAuthProvider | RedirectResponse:
    """Look up a provider; browsers get an error redirect instead of a 503."""
    try:
        return registry.get(name)
    except NotConfiguredError as e:
        if wants_html(request):
            return error_redirect(settings, e.message)
        raise


@router.get("/providers", response_model=ProviderAvailability)
async def list_providers(registry: ProvidersDep):
    """Which social login buttons the client should show."""
    return registry.availability()


@router.get("/{provider}", response_class=RedirectResponse, status_code=302)
async def oauth_start(
    provider: str,
    request: Request,
    registry: ProvidersDep,
    tokens: TokenIssuerDep,
    settings: SettingsDep,
    token: str | None = None,
):
    """Redirect to the provider's consent page.

    A valid session token in ?token= becomes a short-lived linking-intent
    token carried through the provider as the OAuth state.
    """
    oauth = _enabled_provider(registry, provider, request, settings)
    if isinstance(oauth, RedirectResponse):
        return oauth

    state = None
    if token:
        claims = tokens.verify_or_none(token, TokenPurpose.session)
        if claims is None:
            logger.info("Ignoring invalid session token on OAuth start")
        else:
            state = tokens.issue(claims.subject_id, claims.username, TokenPurpose.link)

    url = oauth.authorization_url(callback_url(settings, provider), state=state)
    return RedirectResponse(url, status_code=302)


@router.get("/{provider}/callback", response_class=RedirectResponse, status_code=302)
async def oauth_callback(
    provider: str,
    request: Request,
    registry: ProvidersDep,
    linker: LinkerDep,
    authenticator: AuthenticatorDep,
    repo: UserRepoDep,
    settings: SettingsDep,
    code: str | None = None,
    state: str | None = None,
    error: str | None = None,
):
    """Finish social login and hand the session token to the web client."""
    oauth = _enabled_provider(registry, provider, request, settings)
    if isinstance(oauth, RedirectResponse):
        return oauth

    if error or not code:
        logger.info(
            "OAuth callback without code: %s",
            error or "missing code",
            extra={"provider": oauth.provider.value},
        )
        return error_redirect(settings, "Authorization was cancelled or denied")

    try:
        profile = await oauth.exchange_callback(code, callback_url(settings, provider))
        result = linker.resolve(repo, profile, link_token=state)
    except (ProviderError, ConflictError) as e:
        logger.info(
            "OAuth callback failed: %s",
            e.error_type,
            extra={"provider": oauth.provider.value, "error_type": e.error_type},
        )
        return error_redirect(settings, e.message)

    user = result.user
    logger.info(
        "Social login completed (%s)",
        result.action.value,
        extra={"user_id": user.id, "provider": oauth.provider.value},
    )
    return client_redirect(
        settings,
        token=authenticator.issue_session(user),
        username=user.username,
        id=str(user.id),
    )
