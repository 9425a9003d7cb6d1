"""
SDK configuration models and helpers.

Centralizes settings so the client facade, the auth hook and the audit log
share a consistent configuration surface. Explicit constructor arguments
always take precedence over values loaded here.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_API_URL = "https://vault.lifestreamdynamics.com"


class SDKSettings(BaseSettings):
    """Root settings object, populated from ``LSVAULT_*`` environment variables."""

    base_url: str = Field(DEFAULT_API_URL, description="API server base URL.")
    timeout_seconds: float = Field(30.0, gt=0)
    refresh_buffer_ms: int = Field(
        60_000,
        ge=0,
        description="Lead time before expiry at which an access token is refreshed.",
    )
    refresh_path: str = Field("auth/refresh", description="Relative refresh endpoint.")
    enable_request_signing: Optional[bool] = Field(
        None,
        description="Sign mutating requests. Defaults to on for API-key auth.",
    )
    enable_audit_logging: bool = False
    audit_log_path: Optional[str] = Field(
        None,
        description="Audit log location. Defaults to ~/.lsvault/audit.log.",
    )
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="LSVAULT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")


@lru_cache()
def get_settings() -> SDKSettings:
    """Return a cached settings object."""
    return SDKSettings()


__all__ = ["DEFAULT_API_URL", "SDKSettings", "get_settings"]
