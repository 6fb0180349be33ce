"""Tests for warden/core/settings.py - typed configuration."""

from datetime import timedelta

import pytest
from pydantic import ValidationError

from warden.core.settings import Settings

REQUIRED = {
    "database_url": "sqlite://",
    "jwt_secret": "0123456789abcdef",
    "session_secret_key": "s",
}


def test_cors_origins_list_parsing():
    settings = Settings(**REQUIRED, cors_origins=" http://a.test ,, http://b.test ")

    assert settings.cors_origins_list == ["http://a.test", "http://b.test"]


@pytest.mark.parametrize(
    ("env_name", "expected"),
    [("development", True), ("DEV", True), ("local", True), ("production", False)],
)
def test_is_development(env_name, expected):
    assert Settings(**REQUIRED, env_name=env_name).is_development is expected


def test_token_lifetimes():
    settings = Settings(
        **REQUIRED, session_expires_days=3, link_token_expires_minutes=5
    )

    assert settings.session_expires_in == timedelta(days=3)
    assert settings.link_token_expires_in == timedelta(minutes=5)


def test_short_jwt_secret_rejected():
    with pytest.raises(ValidationError):
        Settings(**{**REQUIRED, "jwt_secret": "short"})


def test_provider_credentials(test_settings):
    assert test_settings.provider_credentials("google") == (
        "google-client-id",
        "google-client-secret",
    )
    assert test_settings.provider_credentials("microsoft") is None


def test_facebook_uses_app_fields():
    settings = Settings(**REQUIRED, facebook_app_id="id", facebook_app_secret="sec")

    assert settings.provider_credentials("facebook") == ("id", "sec")
