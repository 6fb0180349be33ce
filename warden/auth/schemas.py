"""Auth domain schemas.

Request and response schemas for authentication operations. A few response
fields keep the camelCase names web clients already use (require2FA,
provisioningUri, *Preview).
"""

import uuid
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class RegisterRequest(BaseModel):
    """Request schema for local account registration."""

    username: str
    email: str
    password: str


class LoginRequest(BaseModel):
    """Request schema for email/password login."""

    email: str = Field(min_length=1)
    password: str = Field(min_length=1)


class TwoFactorLoginRequest(BaseModel):
    """Second half of a 2FA-gated login: the account email plus a TOTP code."""

    email: str = Field(min_length=1)
    token: str = Field(min_length=1)


class AliasedResponse(BaseModel):
    """Response whose camelCase keys are also accepted by field name."""

    model_config = ConfigDict(populate_by_name=True)


class UserSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    username: str
    email: str
    preferences: dict[str, Any] | None = None


class RegisterResponse(AliasedResponse):
    message: str
    user: UserSummary
    token: str
    verify_token_preview: str | None = Field(
        default=None, alias="verifyTokenPreview"
    )


class LoginResponse(BaseModel):
    message: str
    user: UserSummary
    token: str


class TwoFactorRequiredResponse(AliasedResponse):
    message: str = "Two-factor authentication code required"
    require_2fa: Literal[True] = Field(default=True, alias="require2FA")
    type: Literal["totp"] = "totp"


class TokenRequest(BaseModel):
    """Request carrying a single token (verification token or TOTP code)."""

    token: str = Field(min_length=1)


class EmailRequest(BaseModel):
    email: str = Field(min_length=1)


class PasswordResetConfirmRequest(BaseModel):
    token: str = Field(min_length=1)
    password: str


class VerificationSentResponse(AliasedResponse):
    message: str
    verify_token_preview: str | None = Field(
        default=None, alias="verifyTokenPreview"
    )


class PasswordResetRequestResponse(AliasedResponse):
    message: str
    token_preview: str | None = Field(default=None, alias="tokenPreview")


class TwoFactorSetupResponse(AliasedResponse):
    message: str = "Scan the code with your authenticator app"
    secret: str
    provisioning_uri: str = Field(alias="provisioningUri")


class AuthMessage(BaseModel):
    """Generic auth message response."""

    message: str


class ProviderAvailability(BaseModel):
    google: bool
    github: bool
    microsoft: bool
    facebook: bool
    gmail: bool
