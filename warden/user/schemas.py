"""User domain schemas.

Response and request schemas for the signed-in user's own profile.

Security notes:
- password_hash, two_factor_secret, recovery tokens and provider external
  ids are internal-only and never appear here
- linked_providers exposes only which providers are linked, not their ids
"""

import uuid
from datetime import UTC, datetime
from typing import Any

from pydantic import field_serializer
from sqlmodel import SQLModel

from warden.user.models import UserRole


class UserBase(SQLModel):
    """Base user properties safe for all API responses."""

    username: str
    email: str
    email_verified: bool


class UserPublicRead(UserBase):
    """Response schema for GET /me."""

    id: uuid.UUID
    role: UserRole
    two_factor_enabled: bool
    linked_providers: list[str]
    preferences: dict[str, Any]
    created_at: datetime
    updated_at: datetime

    @field_serializer("created_at", "updated_at")
    def serialize_datetime(self, value: datetime) -> str:
        """Format datetime as ISO 8601 in UTC with a Z suffix."""
        if value.tzinfo is not None:
            utc_value = value.astimezone(UTC)
        else:
            # Naive datetime - assume it's already UTC (from TimestampMixin)
            utc_value = value.replace(tzinfo=UTC)
        return utc_value.replace(microsecond=0).isoformat().replace("+00:00", "Z")


class PreferencesUpdate(SQLModel):
    """Keys to merge into the stored preferences; other keys are kept."""

    preferences: dict[str, Any]


class PreferencesRead(SQLModel):
    message: str
    preferences: dict[str, Any]
