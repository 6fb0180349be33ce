"""Reconciliation of social identities with local accounts.

Given a provider-verified profile and an optional linking-intent token,
IdentityLinker.resolve() picks exactly one local user, first rule wins:

1. The (provider, external id) pair is already bound to a user, and there
   is no linking intent or it names that same user: that user.
2. A valid linking-intent token names user L:
   a. the pair is bound to a different user: AccountAlreadyLinkedError,
      nothing is written;
   b. otherwise the external id is attached to L.
3. The profile email matches a local account: the external id is attached
   to that account (provider-asserted email taken as proof of ownership).
4. A new account is created with no password and email_verified set.

Bad, expired or orphaned linking-intent tokens count as absent. Races are
settled by the unique constraints: a lost insert is retried as a lookup.
"""

import logging
import secrets
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache

from warden.auth.providers import ExternalProfile
from warden.auth.tokens import TokenIssuer, TokenPurpose, get_token_issuer
from warden.core.exceptions import ConflictError
from warden.user.models import User
from warden.user.repository import UserRepository, normalize_email

logger = logging.getLogger(__name__)

MAX_USERNAME_LENGTH = 50
CREATE_ATTEMPTS = 3


class AccountAlreadyLinkedError(ConflictError):
    """The social identity already belongs to a different local account."""

    error_type = "account_already_linked"

    def __init__(
        self, message: str = "This social account is already linked to another user"
    ):
        super().__init__(message)


class LinkAction(str, Enum):
    existing = "existing"
    linked = "linked"
    linked_by_email = "linked_by_email"
    created = "created"


@dataclass(frozen=True)
class LinkResult:
    user: User
    action: LinkAction


class IdentityLinker:
    def __init__(
        self,
        tokens: TokenIssuer,
        placeholder_email_domain: str = "placeholder.com",
        trust_provider_email: bool = True,
    ):
        self.tokens = tokens
        self.placeholder_email_domain = placeholder_email_domain.lower()
        self.trust_provider_email = trust_provider_email

    def placeholder_email(self, profile: ExternalProfile) -> str:
        local = f"{profile.provider.value}_{profile.external_id}".lower()
        return f"{local}@{self.placeholder_email_domain}"

    def fallback_username(self, profile: ExternalProfile) -> str:
        return f"{profile.provider.value}_{profile.external_id}"[:MAX_USERNAME_LENGTH]

    def _link_target(
        self, repo: UserRepository, link_token: str | None
    ) -> User | None:
        claims = self.tokens.verify_or_none(link_token, TokenPurpose.link)
        if claims is None:
            if link_token:
                logger.info("Ignoring invalid linking-intent token")
            return None
        return repo.get(claims.subject_id)

    def _may_link_by_email(self, profile: ExternalProfile, email: str) -> bool:
        if not self.trust_provider_email:
            return False
        if profile.email_verified is False:
            return False
        return not email.endswith(f"@{self.placeholder_email_domain}")

    def resolve(
        self,
        repo: UserRepository,
        profile: ExternalProfile,
        link_token: str | None = None,
    ) -> LinkResult:
        """Map a provider profile to exactly one local user.

        Raises:
            AccountAlreadyLinkedError: Linking intent for a user other than the
                one that already owns this social identity.
        """
        provider = profile.provider
        bound = repo.get_by_provider_id(provider, profile.external_id)
        target = self._link_target(repo, link_token)

        if target is not None:
            if bound is not None and bound.id != target.id:
                logger.info(
                    "Refused link of identity owned by another user",
                    extra={"user_id": target.id, "provider": provider.value},
                )
                raise AccountAlreadyLinkedError()
            if bound is None:
                user = self._attach(repo, target, profile)
                return LinkResult(user, LinkAction.linked)

        if bound is not None:
            return LinkResult(bound, LinkAction.existing)

        email = normalize_email(profile.email) if profile.email else None
        if email and self._may_link_by_email(profile, email):
            owner = repo.get_by_email(email)
            if owner is not None:
                return self._link_by_email(repo, owner, profile)

        return self._create(repo, profile, email)

    def _attach(
        self, repo: UserRepository, user: User, profile: ExternalProfile
    ) -> User:
        provider = profile.provider
        previous = user.provider_id(provider)
        user.set_provider_id(provider, profile.external_id)
        try:
            repo.save(user)
        except ConflictError as e:
            if e.field != provider.id_field:
                raise
            # Another request bound the identity first.
            raise AccountAlreadyLinkedError() from e
        if previous is not None and previous != profile.external_id:
            logger.info(
                "Replaced linked identity",
                extra={"user_id": user.id, "provider": provider.value},
            )
        logger.info(
            "Linked social identity",
            extra={"user_id": user.id, "provider": provider.value},
        )
        return user

    def _link_by_email(
        self, repo: UserRepository, owner: User, profile: ExternalProfile
    ) -> LinkResult:
        current = owner.provider_id(profile.provider)
        if current is not None and current != profile.external_id:
            # The account is already tied to a different identity at this
            # provider; an email match must not silently swap it out.
            raise AccountAlreadyLinkedError(
                "This email belongs to an account linked to another "
                f"{profile.provider.value} identity"
            )
        user = self._attach(repo, owner, profile)
        return LinkResult(user, LinkAction.linked_by_email)

    def _username_candidates(
        self, repo: UserRepository, profile: ExternalProfile
    ) -> list[str]:
        candidates = []
        if profile.display_name:
            name = profile.display_name.strip()[:MAX_USERNAME_LENGTH]
            if name and repo.get_by_username(name) is None:
                candidates.append(name)
        fallback = self.fallback_username(profile)
        candidates.append(fallback)
        suffix = secrets.token_hex(3)
        candidates.append(f"{fallback[: MAX_USERNAME_LENGTH - 7]}_{suffix}")
        return candidates

    def _create(
        self, repo: UserRepository, profile: ExternalProfile, email: str | None
    ) -> LinkResult:
        provider = profile.provider
        usernames = self._username_candidates(repo, profile)
        if email is None or repo.get_by_email(email) is not None:
            # Untrusted address already in use locally, or no address at all.
            email = self.placeholder_email(profile)

        for _ in range(CREATE_ATTEMPTS):
            user = User(
                username=usernames[0],
                email=email,
                password_hash=None,
                email_verified=True,
            )
            user.set_provider_id(provider, profile.external_id)
            try:
                repo.save(user)
            except ConflictError as e:
                # A concurrent callback may have created the account first;
                # whichever constraint fired, retry as a plain lookup.
                winner = repo.get_by_provider_id(provider, profile.external_id)
                if winner is not None:
                    return LinkResult(winner, LinkAction.existing)
                if e.field == "username" and len(usernames) > 1:
                    usernames.pop(0)
                    continue
                if e.field == "email":
                    owner = repo.get_by_email(email)
                    if owner is not None and self._may_link_by_email(profile, email):
                        return self._link_by_email(repo, owner, profile)
                    email = self.placeholder_email(profile)
                    continue
                raise
            logger.info(
                "Created account from social login",
                extra={"user_id": user.id, "provider": provider.value},
            )
            return LinkResult(user, LinkAction.created)

        raise ConflictError("Could not create an account for this social identity")


@lru_cache
def get_identity_linker() -> IdentityLinker:
    from warden.core.settings import get_settings

    settings = get_settings()
    return IdentityLinker(
        get_token_issuer(),
        placeholder_email_domain=settings.placeholder_email_domain,
        trust_provider_email=settings.trust_provider_email,
    )
