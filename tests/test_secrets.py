"""Tests for signing-secret loading."""
from __future__ import annotations

import pytest

from app.security.secrets import MissingSecretError, is_placeholder, require_secret
from app.services import auth_service


@pytest.mark.parametrize("value", [None, "", "   ", "changeme", " Placeholder ", "your-key-here"])
def test_is_placeholder_flags_unusable_values(value):
    assert is_placeholder(value) is True


def test_require_secret_prefers_configured_value(monkeypatch):
    monkeypatch.setenv("SIGNING_KEY", "from-environment")

    assert require_secret("SIGNING_KEY", "  from-settings ") == "from-settings"
    assert require_secret("SIGNING_KEY") == "from-environment"


def test_require_secret_rejects_missing_and_placeholder(monkeypatch):
    monkeypatch.delenv("SIGNING_KEY", raising=False)

    with pytest.raises(MissingSecretError):
        require_secret("SIGNING_KEY")
    with pytest.raises(MissingSecretError) as excinfo:
        require_secret("SIGNING_KEY", "example")
    assert "example" not in str(excinfo.value)


def test_jwt_secret_comes_from_settings(monkeypatch):
    settings = auth_service.get_settings()
    monkeypatch.setattr(settings, "jwt_secret_key", "rotated-key")
    token = auth_service.create_access_token("u-ann")

    assert auth_service.decode_access_token(token) == "u-ann"

    monkeypatch.setattr(settings, "jwt_secret_key", "changeme")
    with pytest.raises(RuntimeError):
        auth_service.create_access_token("u-ann")
