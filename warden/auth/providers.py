"""Social login providers.

The four providers speak the same OAuth 2.0 authorization-code flow and
differ only in endpoints, scopes and where the profile keeps its fields,
so one OAuthProvider class is driven by a provider-name keyed table.

The ProviderRegistry is built once from settings and never mutated.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from functools import lru_cache
from types import MappingProxyType
from typing import Any
from urllib.parse import urlencode

import httpx

from warden.core.exceptions import NotConfiguredError, NotFoundError, ProviderError
from warden.core.http import get_oauth_client
from warden.core.retry import with_retry
from warden.core.settings import Settings
from warden.user.models import Provider

logger = logging.getLogger(__name__)

# Route names that reuse another provider's credentials.
PROVIDER_ALIASES: Mapping[str, Provider] = MappingProxyType({"gmail": Provider.google})


@dataclass(frozen=True)
class ProviderSpec:
    provider: Provider
    label: str
    authorize_url: str
    token_url: str
    profile_url: str
    scopes: tuple[str, ...]
    id_key: str = "id"
    name_keys: tuple[str, ...] = ("name",)
    email_keys: tuple[str, ...] = ("email",)
    email_verified_key: str | None = None
    # Keys whose address the provider does not vouch for.
    unverified_email_keys: tuple[str, ...] = ()
    # Secondary endpoint listing addresses when the profile hides them.
    emails_url: str | None = None
    extra_authorize_params: Mapping[str, str] = field(
        default_factory=lambda: MappingProxyType({})
    )


PROVIDER_SPECS: Mapping[Provider, ProviderSpec] = MappingProxyType(
    {
        Provider.google: ProviderSpec(
            provider=Provider.google,
            label="Google",
            authorize_url="https://accounts.google.com/o/oauth2/v2/auth",
            token_url="https://oauth2.googleapis.com/token",
            profile_url="https://openidconnect.googleapis.com/v1/userinfo",
            scopes=("openid", "profile", "email"),
            id_key="sub",
            email_verified_key="email_verified",
        ),
        Provider.github: ProviderSpec(
            provider=Provider.github,
            label="GitHub",
            authorize_url="https://github.com/login/oauth/authorize",
            token_url="https://github.com/login/oauth/access_token",
            profile_url="https://api.github.com/user",
            scopes=("user:email",),
            name_keys=("name", "login"),
            emails_url="https://api.github.com/user/emails",
        ),
        Provider.microsoft: ProviderSpec(
            provider=Provider.microsoft,
            label="Microsoft",
            authorize_url=(
                "https://login.microsoftonline.com/common/oauth2/v2.0/authorize"
            ),
            token_url="https://login.microsoftonline.com/common/oauth2/v2.0/token",
            profile_url="https://graph.microsoft.com/v1.0/me",
            scopes=("user.read",),
            name_keys=("displayName", "userPrincipalName"),
            email_keys=("mail", "userPrincipalName"),
            unverified_email_keys=("userPrincipalName",),
            extra_authorize_params=MappingProxyType({"response_mode": "query"}),
        ),
        Provider.facebook: ProviderSpec(
            provider=Provider.facebook,
            label="Facebook",
            authorize_url="https://www.facebook.com/v19.0/dialog/oauth",
            token_url="https://graph.facebook.com/v19.0/oauth/access_token",
            profile_url="https://graph.facebook.com/v19.0/me?fields=id,name,email",
            scopes=("email",),
        ),
    }
)


@dataclass(frozen=True)
class ExternalProfile:
    """Identity asserted by a provider after a successful code exchange."""

    provider: Provider
    external_id: str
    display_name: str | None = None
    emails: tuple[str, ...] = ()
    # None when the provider does not say.
    email_verified: bool | None = None

    @property
    def email(self) -> str | None:
        return self.emails[0] if self.emails else None


def _first_key(data: Mapping[str, Any], keys: tuple[str, ...]) -> str | None:
    for key in keys:
        value = data.get(key)
        if isinstance(value, str) and value.strip():
            return key
    return None


def _first_str(data: Mapping[str, Any], keys: tuple[str, ...]) -> str | None:
    key = _first_key(data, keys)
    return data[key].strip() if key else None


def _is_retryable(response: httpx.Response) -> bool:
    return response.status_code >= 500


class OAuthProvider:
    """Authorization-code flow for one configured provider."""

    def __init__(self, spec: ProviderSpec, client_id: str, client_secret: str):
        self.spec = spec
        self._client_id = client_id
        self._client_secret = client_secret

    @property
    def provider(self) -> Provider:
        return self.spec.provider

    def authorization_url(self, redirect_uri: str, state: str | None = None) -> str:
        """URL of the provider consent page; state round-trips to the callback."""
        params = {
            "client_id": self._client_id,
            "redirect_uri": redirect_uri,
            "response_type": "code",
            "scope": " ".join(self.spec.scopes),
            **self.spec.extra_authorize_params,
        }
        if state:
            params["state"] = state
        return f"{self.spec.authorize_url}?{urlencode(params)}"

    async def _request(
        self, method: str, url: str, **kwargs: Any
    ) -> httpx.Response:
        client = get_oauth_client()
        try:
            response = await with_retry(
                lambda: client.request(method, url, **kwargs),
                attempts=2,
                exceptions=(httpx.RequestError,),
                retry_if=_is_retryable,
            )
        except httpx.RequestError as e:
            raise ProviderError(f"{self.spec.label} is unavailable") from e
        if response.status_code != 200:
            logger.info(
                "%s answered %s for %s",
                self.spec.label,
                response.status_code,
                url.split("?", 1)[0],
                extra={"provider": self.provider.value},
            )
            raise ProviderError(f"{self.spec.label} rejected the request")
        return response

    async def _get_json(self, url: str, access_token: str) -> Any:
        response = await self._request(
            "GET", url, headers={"Authorization": f"Bearer {access_token}"}
        )
        try:
            return response.json()
        except ValueError as e:
            raise ProviderError() from e

    async def fetch_access_token(self, code: str, redirect_uri: str) -> str:
        response = await self._request(
            "POST",
            self.spec.token_url,
            data={
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": redirect_uri,
                "client_id": self._client_id,
                "client_secret": self._client_secret,
            },
            headers={"Accept": "application/json"},
        )
        try:
            payload = response.json()
        except ValueError as e:
            raise ProviderError() from e
        if not isinstance(payload, dict):
            raise ProviderError()
        access_token = payload.get("access_token")
        if not access_token:
            # GitHub reports bad codes as 200 {"error": "bad_verification_code"}.
            raise ProviderError(f"{self.spec.label} did not return an access token")
        return access_token

    async def _fetch_listed_emails(self, access_token: str) -> tuple[list[str], bool]:
        """Verified addresses from the secondary endpoint, primary first."""
        listed = await self._get_json(self.spec.emails_url, access_token)
        if not isinstance(listed, list):
            return [], False
        verified = [
            e
            for e in listed
            if isinstance(e, dict) and e.get("verified") and e.get("email")
        ]
        verified.sort(key=lambda e: not e.get("primary"))
        return [e["email"] for e in verified], bool(verified)

    async def exchange_callback(self, code: str, redirect_uri: str) -> ExternalProfile:
        """Trade an authorization code for the caller's verified profile.

        Raises:
            ProviderError: Network failure or an unusable provider answer.
        """
        if not code:
            raise ProviderError("Missing authorization code")
        access_token = await self.fetch_access_token(code, redirect_uri)
        data = await self._get_json(self.spec.profile_url, access_token)
        if not isinstance(data, dict) or data.get(self.spec.id_key) in (None, ""):
            raise ProviderError(f"{self.spec.label} returned no account id")

        emails: list[str] = []
        email_verified: bool | None = None
        email_key = _first_key(data, self.spec.email_keys)
        email = data[email_key].strip() if email_key else None
        if email and "@" in email:
            emails.append(email)
            if email_key in self.spec.unverified_email_keys:
                email_verified = False
            elif self.spec.email_verified_key is not None:
                email_verified = bool(data.get(self.spec.email_verified_key))
        elif self.spec.emails_url:
            emails, email_verified = await self._fetch_listed_emails(access_token)

        return ExternalProfile(
            provider=self.provider,
            external_id=str(data[self.spec.id_key]),
            display_name=_first_str(data, self.spec.name_keys),
            emails=tuple(emails),
            email_verified=email_verified,
        )


@dataclass(frozen=True)
class ProviderRegistry:
    """Immutable set of enabled providers, built at startup."""

    providers: Mapping[Provider, OAuthProvider]

    @classmethod
    def from_settings(cls, settings: Settings) -> "ProviderRegistry":
        enabled: dict[Provider, OAuthProvider] = {}
        for provider, spec in PROVIDER_SPECS.items():
            credentials = settings.provider_credentials(provider.value)
            if credentials is None:
                continue
            enabled[provider] = OAuthProvider(spec, *credentials)
        logger.info(
            "OAuth providers enabled: %s",
            ", ".join(p.value for p in enabled) or "none",
        )
        return cls(providers=MappingProxyType(enabled))

    @staticmethod
    def resolve_name(name: str) -> Provider:
        """Map a route name (including aliases) to a Provider."""
        if name in PROVIDER_ALIASES:
            return PROVIDER_ALIASES[name]
        try:
            return Provider(name)
        except ValueError as e:
            raise NotFoundError(f"Unknown provider: {name}") from e

    def get(self, name: str) -> OAuthProvider:
        """Return the enabled provider for a route name.

        Raises:
            NotFoundError: Unknown provider name.
            NotConfiguredError: Known provider without credentials.
        """
        provider = self.resolve_name(name)
        oauth = self.providers.get(provider)
        if oauth is None:
            label = PROVIDER_SPECS[provider].label
            raise NotConfiguredError(
                name, f"OAuth {label} is not configured on the server"
            )
        return oauth

    def availability(self) -> dict[str, bool]:
        """Enabled flag for every route name, aliases included."""
        flags = {p.value: p in self.providers for p in Provider}
        for alias, target in PROVIDER_ALIASES.items():
            flags[alias] = target in self.providers
        return flags


@lru_cache
def get_provider_registry() -> ProviderRegistry:
    from warden.core.settings import get_settings

    return ProviderRegistry.from_settings(get_settings())
