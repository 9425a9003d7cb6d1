"""
Client facade wiring credentials, signing and audit logging into one
pre-configured ``httpx.AsyncClient``.

Resource wrappers issue their requests through :attr:`VaultClient.http`.
"""

from __future__ import annotations

from typing import Any, Optional, Tuple

import httpx

from vault_sdk.clients.auth_http import (
    AuthHttpClient,
    LoginResult,
    MfaCallback,
    api_prefix_url,
)
from vault_sdk.clients.vault_auth import VaultAuth
from vault_sdk.core.config import SDKSettings, get_settings
from vault_sdk.core.errors import ValidationError
from vault_sdk.models.tokens import AuthTokens
from vault_sdk.services.audit_log import AuditLogger
from vault_sdk.services.token_manager import OnTokenRefresh, TokenManager


class VaultClient:
    """Authenticated HTTP access to the Lifestream Vault API."""

    def __init__(
        self,
        *,
        api_key: Optional[str] = None,
        access_token: Optional[str] = None,
        refresh_token: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        refresh_buffer_ms: Optional[int] = None,
        on_token_refresh: Optional[OnTokenRefresh] = None,
        enable_request_signing: Optional[bool] = None,
        enable_audit_logging: Optional[bool] = None,
        audit_log_path: Optional[str] = None,
        settings: Optional[SDKSettings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        if not api_key and not access_token:
            raise ValidationError("Either apiKey or accessToken is required")

        settings = settings or get_settings()
        self.base_url = (base_url or settings.base_url).rstrip("/")
        timeout = timeout if timeout is not None else settings.timeout_seconds

        if enable_request_signing is None:
            enable_request_signing = settings.enable_request_signing
        if enable_audit_logging is None:
            enable_audit_logging = settings.enable_audit_logging
        audit_logger = None
        if enable_audit_logging:
            audit_logger = AuditLogger(audit_log_path or settings.audit_log_path)

        # The refresh transport carries no auth hooks, so refreshing never recurses.
        self._auth_http = AuthHttpClient(self.base_url, timeout=timeout, transport=transport)

        self.token_manager: Optional[TokenManager] = None
        if not api_key:
            self.token_manager = TokenManager(
                access_token,
                refresh_token,
                refresh_buffer_ms=(
                    refresh_buffer_ms
                    if refresh_buffer_ms is not None
                    else settings.refresh_buffer_ms
                ),
                on_token_refresh=on_token_refresh,
                refresh_path=settings.refresh_path,
            )

        self.auth = VaultAuth(
            api_key=api_key,
            token_manager=self.token_manager,
            refresh_transport=self._auth_http,
            sign_requests=enable_request_signing,
            audit_logger=audit_logger,
        )
        self.http = httpx.AsyncClient(
            base_url=api_prefix_url(self.base_url),
            timeout=timeout,
            auth=self.auth,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self.http.aclose()
        await self._auth_http.aclose()

    async def __aenter__(self) -> "VaultClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    @classmethod
    async def login(
        cls,
        email: str,
        password: str,
        *,
        base_url: Optional[str] = None,
        mfa_code: Optional[str] = None,
        on_mfa_required: Optional[MfaCallback] = None,
        settings: Optional[SDKSettings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        **options: Any,
    ) -> Tuple["VaultClient", AuthTokens, Optional[str]]:
        """Log in and return ``(client, tokens, refresh_token)``."""
        settings = settings or get_settings()
        base_url = (base_url or settings.base_url).rstrip("/")
        timeout = options.get("timeout") or settings.timeout_seconds

        async with AuthHttpClient(base_url, timeout=timeout, transport=transport) as auth_http:
            result: LoginResult = await auth_http.login(
                email,
                password,
                mfa_code=mfa_code,
                on_mfa_required=on_mfa_required,
            )

        client = cls(
            access_token=result.tokens.access_token,
            refresh_token=result.refresh_token,
            base_url=base_url,
            settings=settings,
            transport=transport,
            **options,
        )
        return client, result.tokens, result.refresh_token


__all__ = ["VaultClient"]
