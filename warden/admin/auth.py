"""SQLAdmin authentication backend.

Console logins reuse the normal credential check and are limited to
accounts with the admin role. Accounts protected by 2FA are refused because
the console login form has no second-factor step.
"""

import logging
import uuid
from collections.abc import Callable

from sqladmin.authentication import AuthenticationBackend
from sqlmodel import Session
from starlette.requests import Request

from warden.auth.authenticator import AuthOutcome, get_credential_authenticator
from warden.core.settings import get_settings
from warden.db.engine import engine
from warden.user.repository import UserRepository

logger = logging.getLogger(__name__)

SESSION_KEY = "admin_user_id"


def _default_session() -> Session:
    return Session(engine)


class AdminAuth(AuthenticationBackend):
    """SQLAdmin auth using Starlette sessions."""

    def __init__(self, session_factory: Callable[[], Session] = _default_session):
        # SQLAdmin signs its session cookie with this secret.
        settings = get_settings()
        super().__init__(secret_key=settings.session_secret_key)
        self._session_factory = session_factory

    async def login(self, request: Request) -> bool:
        form = await request.form()
        email = str(form.get("username", form.get("email", "")))
        password = str(form.get("password", ""))

        with self._session_factory() as session:
            result = get_credential_authenticator().authenticate(
                UserRepository(session), email, password
            )
            if result.outcome is AuthOutcome.requires_2fa:
                logger.info(
                    "Admin console refused 2FA account",
                    extra={"user_id": result.user.id},
                )
                return False
            if result.outcome is not AuthOutcome.success or not result.user.is_admin:
                return False
            request.session[SESSION_KEY] = str(result.user.id)
        return True

    async def logout(self, request: Request) -> bool:
        request.session.clear()
        return True

    async def authenticate(self, request: Request) -> bool:
        user_id = request.session.get(SESSION_KEY)
        if not user_id:
            return False
        try:
            key = uuid.UUID(user_id)
        except ValueError:
            return False
        with self._session_factory() as session:
            user = UserRepository(session).get(key)
            return user is not None and user.is_admin
