"""Tests for configuration loading."""

try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import logging

from vault_sdk.core.config import DEFAULT_API_URL, SDKSettings, get_settings
from vault_sdk.core.logging import SDK_LOGGER, configure_logging


def test_settings_from_env(monkeypatch) -> None:
    monkeypatch.setenv("LSVAULT_BASE_URL", "https://vault.example.com/")
    monkeypatch.setenv("LSVAULT_REFRESH_BUFFER_MS", "120000")
    monkeypatch.setenv("LSVAULT_ENABLE_REQUEST_SIGNING", "false")
    monkeypatch.setenv("LSVAULT_TIMEOUT_SECONDS", "5")

    settings = SDKSettings()

    assert settings.base_url == "https://vault.example.com"
    assert settings.refresh_buffer_ms == 120_000
    assert settings.enable_request_signing is False
    assert settings.timeout_seconds == 5.0


def test_settings_defaults(monkeypatch) -> None:
    monkeypatch.delenv("LSVAULT_BASE_URL", raising=False)
    monkeypatch.delenv("LSVAULT_ENABLE_AUDIT_LOGGING", raising=False)

    settings = SDKSettings(_env_file=None)

    assert settings.base_url == DEFAULT_API_URL
    assert settings.refresh_buffer_ms == 60_000
    assert settings.refresh_path == "auth/refresh"
    assert settings.enable_request_signing is None
    assert settings.enable_audit_logging is False


def test_get_settings_is_cached() -> None:
    get_settings.cache_clear()
    assert get_settings() is get_settings()


def test_configure_logging_sets_sdk_and_http_levels() -> None:
    configure_logging("debug")

    assert logging.getLogger(SDK_LOGGER).level == logging.DEBUG
    assert logging.getLogger("httpx").level == logging.WARNING
