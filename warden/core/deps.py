"""Shared dependency type aliases for FastAPI routes.

Auth-specific aliases (current user, token issuer, providers) live in
warden.auth.dependencies.
"""

from typing import Annotated

from fastapi import Depends
from sqlmodel import Session

from warden.core.settings import Settings, get_settings
from warden.db.engine import get_session
from warden.user.repository import UserRepository

# Database session
SessionDep = Annotated[Session, Depends(get_session)]

# Application settings
SettingsDep = Annotated[Settings, Depends(get_settings)]


def get_user_repository(session: SessionDep) -> UserRepository:
    return UserRepository(session)


UserRepoDep = Annotated[UserRepository, Depends(get_user_repository)]
