"""User domain models.

SQLModel table definition for User, the only entity of the identity core.
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import Any

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel

from warden.core.mixins import TimestampMixin


class UserRole(str, Enum):
    """Role tag; admins may use the admin console and step-up endpoints."""

    user = "user"
    admin = "admin"


class Provider(str, Enum):
    """Social login providers with a dedicated external-id column."""

    google = "google"
    github = "github"
    microsoft = "microsoft"
    facebook = "facebook"

    @property
    def id_field(self) -> str:
        """Name of the User column holding this provider's external id."""
        return f"{self.value}_id"


class User(TimestampMixin, SQLModel, table=True):
    """User database model.

    Note: password_hash, two_factor_secret, recovery tokens and provider
    external ids are internal-only and never exposed in API responses.
    """

    __tablename__: str = "users"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    username: str = Field(index=True, unique=True, max_length=255)
    email: str = Field(index=True, unique=True, max_length=255)
    password_hash: str | None = Field(default=None, max_length=255)
    email_verified: bool = Field(default=False)

    email_verification_token: str | None = Field(default=None, index=True)
    email_verification_expires: datetime | None = None
    reset_password_token: str | None = Field(default=None, index=True)
    reset_password_expires: datetime | None = None

    two_factor_enabled: bool = Field(default=False)
    two_factor_secret: str | None = Field(default=None, max_length=64)

    google_id: str | None = Field(default=None, unique=True)
    github_id: str | None = Field(default=None, unique=True)
    microsoft_id: str | None = Field(default=None, unique=True)
    facebook_id: str | None = Field(default=None, unique=True)

    preferences: dict[str, Any] = Field(
        default_factory=dict, sa_column=Column(JSON, nullable=False)
    )
    role: UserRole = Field(default=UserRole.user, max_length=20)

    @property
    def has_password(self) -> bool:
        return self.password_hash is not None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.admin

    def provider_id(self, provider: Provider) -> str | None:
        return getattr(self, provider.id_field)

    def set_provider_id(self, provider: Provider, external_id: str) -> None:
        setattr(self, provider.id_field, external_id)

    @property
    def linked_providers(self) -> list[str]:
        return [p.value for p in Provider if self.provider_id(p) is not None]
