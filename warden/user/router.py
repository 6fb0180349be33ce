"""User domain router.

Profile routes for the signed-in user.
"""

import json
import logging

from fastapi import APIRouter, Depends

from warden.auth.dependencies import CurrentUserDep, require_auth
from warden.core.constants import CommonResponses, Routes
from warden.core.deps import SettingsDep, UserRepoDep
from warden.core.exceptions import ValidationError
from warden.user.schemas import PreferencesRead, PreferencesUpdate, UserPublicRead

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix=Routes.USER.prefix,
    tags=[Routes.USER.tag],
    dependencies=[Depends(require_auth)],
    responses={**CommonResponses.UNAUTHORIZED},
)


def serialized_size(value: dict) -> int:
    """Size in bytes of the compact JSON encoding."""
    return len(json.dumps(value, separators=(",", ":")).encode("utf-8"))


@router.get("/me", response_model=UserPublicRead)
async def get_me(user: CurrentUserDep):
    """Get current authenticated user."""
    return UserPublicRead.model_validate(user)


@router.put(
    "/preferences",
    response_model=PreferencesRead,
    responses={**CommonResponses.BAD_REQUEST},
)
async def update_preferences(
    payload: PreferencesUpdate,
    user: CurrentUserDep,
    repo: UserRepoDep,
    settings: SettingsDep,
):
    """Merge the given keys into the stored preferences.

    Keys not present in the request are kept. The merged document must stay
    within PREFERENCES_MAX_BYTES.
    """
    merged = {**(user.preferences or {}), **payload.preferences}
    size = serialized_size(merged)
    if size > settings.preferences_max_bytes:
        raise ValidationError(
            f"Preferences too large ({size} bytes, limit "
            f"{settings.preferences_max_bytes})"
        )

    # Reassign so the JSON column registers the change.
    user.preferences = merged
    repo.save(user)
    logger.debug("Preferences updated", extra={"user_id": user.id})
    return PreferencesRead(message="Preferences updated", preferences=user.preferences)
