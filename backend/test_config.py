"""Settings.from_env: environment overrides and production fail-fast."""
import pytest

from orderbot.core.config import Settings

PROVIDER_VARS = {
    "WHATSAPP_VERIFY_TOKEN": "verify-me",
    "WHATSAPP_TOKEN": "token",
    "WHATSAPP_PHONE_NUMBER_ID": "555",
}


def test_from_env_reads_overrides(monkeypatch):
    for name, value in PROVIDER_VARS.items():
        monkeypatch.setenv(name, value)
    monkeypatch.setenv("UNIT_PRICE", "250")
    monkeypatch.setenv("PORT", "8080")
    monkeypatch.setenv("WHATSAPP_API_VERSION", "v19.0")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    settings = Settings.from_env()

    assert settings.UNIT_PRICE == 250
    assert settings.PORT == 8080
    assert settings.LOG_LEVEL == "DEBUG"
    assert settings.messages_url == "https://graph.facebook.com/v19.0/555/messages"


def test_missing_secrets_fail_in_production(monkeypatch):
    for name in PROVIDER_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("ENVIRONMENT", "production")

    with pytest.raises(ValueError):
        Settings.from_env()


def test_missing_secrets_warn_in_development(monkeypatch):
    for name in PROVIDER_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("ENVIRONMENT", "development")

    with pytest.warns(RuntimeWarning):
        settings = Settings.from_env()
    assert settings.WHATSAPP_TOKEN == ""
