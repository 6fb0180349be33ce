"""Auth domain dependencies.

Bearer-token authentication for FastAPI routes, plus injectable aliases for
the auth services so tests can override them.
"""

from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from warden.auth.authenticator import (
    CredentialAuthenticator,
    get_credential_authenticator,
)
from warden.auth.exceptions import AdminRequiredError
from warden.auth.linker import IdentityLinker, get_identity_linker
from warden.auth.providers import ProviderRegistry, get_provider_registry
from warden.auth.recovery import RecoveryTokenManager, get_recovery_token_manager
from warden.auth.second_factor import SecondFactorManager, get_second_factor_manager
from warden.auth.tokens import TokenIssuer, TokenPurpose, get_token_issuer
from warden.core.deps import UserRepoDep
from warden.core.exceptions import InvalidCredentialsError
from warden.user.exceptions import UserNotFoundError
from warden.user.models import User

security = HTTPBearer(auto_error=False)

TokenIssuerDep = Annotated[TokenIssuer, Depends(get_token_issuer)]
AuthenticatorDep = Annotated[
    CredentialAuthenticator, Depends(get_credential_authenticator)
]
SecondFactorDep = Annotated[SecondFactorManager, Depends(get_second_factor_manager)]
RecoveryDep = Annotated[RecoveryTokenManager, Depends(get_recovery_token_manager)]
LinkerDep = Annotated[IdentityLinker, Depends(get_identity_linker)]
ProvidersDep = Annotated[ProviderRegistry, Depends(get_provider_registry)]


def get_current_user(
    repo: UserRepoDep,
    tokens: TokenIssuerDep,
    credentials: Annotated[
        HTTPAuthorizationCredentials | None, Depends(security)
    ] = None,
) -> User:
    """Resolve `Authorization: Bearer <token>` to the local User.

    Only session-purpose tokens are accepted.

    Raises:
        InvalidCredentialsError: No bearer token supplied
        InvalidTokenError: Bad signature, expired, or wrong purpose
        UserNotFoundError: Token subject no longer exists
    """
    if credentials is None or not credentials.credentials:
        raise InvalidCredentialsError("Not authenticated")

    claims = tokens.verify(credentials.credentials, TokenPurpose.session)

    user = repo.get(claims.subject_id)
    if user is None:
        raise UserNotFoundError()
    return user


CurrentUserDep = Annotated[User, Depends(get_current_user)]


def require_auth(_user: CurrentUserDep) -> None:
    """Require authentication without injecting user into path operation.

    Use as a router-level dependency when all routes require auth:
        router = APIRouter(dependencies=[Depends(require_auth)])
    """
    pass  # Authentication already validated by CurrentUserDep


def get_admin_user(user: CurrentUserDep) -> User:
    """Verify the current user has the admin role.

    Raises:
        AdminRequiredError: If user is not an admin
    """
    if not user.is_admin:
        raise AdminRequiredError()
    return user


AdminUserDep = Annotated[User, Depends(get_admin_user)]
