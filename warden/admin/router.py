"""Admin API router.

Step-up protected endpoints: besides an admin session, each request must
carry a current TOTP code in the X-2FA-Code header.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Header

from warden.auth.dependencies import AdminUserDep, SecondFactorDep
from warden.auth.exceptions import InvalidSecondFactorError, SecondFactorRequiredError
from warden.auth.second_factor import CodeCheck
from warden.core.constants import CommonResponses, Routes
from warden.user.models import User

logger = logging.getLogger(__name__)


def require_second_factor(
    user: AdminUserDep,
    second_factor: SecondFactorDep,
    code: Annotated[str | None, Header(alias="X-2FA-Code")] = None,
) -> User:
    """Step-up check for admin operations.

    Raises:
        SecondFactorRequiredError: The admin has not enabled 2FA
        InvalidSecondFactorError: Header missing or code rejected
    """
    if not user.two_factor_enabled:
        raise SecondFactorRequiredError()
    if not code or second_factor.verify(user, code) is not CodeCheck.valid:
        logger.info("Step-up code rejected", extra={"user_id": user.id})
        raise InvalidSecondFactorError()
    return user


SteppedUpAdminDep = Annotated[User, Depends(require_second_factor)]

router = APIRouter(
    prefix=Routes.ADMIN.prefix,
    tags=[Routes.ADMIN.tag],
    responses={**CommonResponses.UNAUTHORIZED, **CommonResponses.FORBIDDEN},
)


@router.get("/secure-health")
async def secure_health(user: SteppedUpAdminDep):
    """Health check reachable only by an admin with a fresh 2FA code."""
    return {"status": "ok", "admin": user.username}
