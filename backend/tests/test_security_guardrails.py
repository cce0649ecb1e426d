from datetime import timedelta

import pytest

from core import config as config_module
from core.security import create_access_token, decode_access_token


def _reset_settings_cache():
    config_module.get_settings.cache_clear()


def test_non_local_debug_mode_is_blocked(monkeypatch):
    monkeypatch.setenv("APP_ENV", "production")
    monkeypatch.setenv("DEBUG", "true")
    monkeypatch.setenv("JWT_SECRET", "real-secret")
    _reset_settings_cache()

    with pytest.raises(ValueError, match="debug=true"):
        config_module.get_settings()


def test_non_local_default_secrets_are_blocked(monkeypatch):
    monkeypatch.setenv("APP_ENV", "staging")
    monkeypatch.setenv("DEBUG", "false")
    monkeypatch.setenv("JWT_SECRET", config_module.DEFAULT_JWT_SECRET)
    _reset_settings_cache()

    with pytest.raises(ValueError, match="default JWT secret"):
        config_module.get_settings()


def test_local_allows_dev_defaults(monkeypatch):
    monkeypatch.setenv("APP_ENV", "local")
    monkeypatch.setenv("DEBUG", "false")
    monkeypatch.setenv("JWT_SECRET", config_module.DEFAULT_JWT_SECRET)
    _reset_settings_cache()

    settings = config_module.get_settings()
    assert settings.app_env == "local"
    assert settings.smartmatch_enabled is True
    assert settings.smartmatch_order_lookback_days == 180


def test_smartmatch_kill_switch_from_env(monkeypatch):
    monkeypatch.setenv("APP_ENV", "test")
    monkeypatch.setenv("SMARTMATCH_ENABLED", "false")
    _reset_settings_cache()

    assert config_module.get_settings().smartmatch_enabled is False
    _reset_settings_cache()


def test_access_token_round_trip():
    token = create_access_token({"sub": "owner-1", "role": "owner", "business_id": "biz-lagos-001"})
    payload = decode_access_token(token)
    assert payload["role"] == "owner"
    assert payload["business_id"] == "biz-lagos-001"


def test_expired_or_tampered_tokens_rejected():
    expired = create_access_token({"sub": "owner-1"}, expires_delta=timedelta(seconds=-10))
    assert decode_access_token(expired) is None
    assert decode_access_token("not-a-token") is None
