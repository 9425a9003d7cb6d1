"""
httpx authentication hook that decorates every outbound API request.

API-key mode sends a static bearer token and signs mutating requests. JWT
mode refreshes a stale access token before sending, and replays a request
once after a 401 if a refresh succeeds.
"""

from __future__ import annotations

import logging
import time
from typing import AsyncGenerator, Generator, Optional

import anyio
import httpx

from vault_sdk.core.errors import SDKError, ValidationError
from vault_sdk.services.audit_log import AuditEntry, AuditLogger
from vault_sdk.services.request_signer import format_timestamp, should_sign, sign_request
from vault_sdk.services.token_manager import RefreshTransport, TokenManager

logger = logging.getLogger(__name__)

RETRY_HEADER = "X-Retry-After-Refresh"


def _request_path(request: httpx.Request) -> str:
    """Percent-encoded path without the query string."""
    return request.url.raw_path.split(b"?", 1)[0].decode("ascii")


class VaultAuth(httpx.Auth):
    """Attach credentials, signatures and audit records to API requests."""

    requires_request_body = True

    def __init__(
        self,
        *,
        api_key: Optional[str] = None,
        token_manager: Optional[TokenManager] = None,
        refresh_transport: Optional[RefreshTransport] = None,
        sign_requests: Optional[bool] = None,
        audit_logger: Optional[AuditLogger] = None,
    ) -> None:
        if not api_key and token_manager is None:
            raise ValidationError("Either apiKey or accessToken is required")
        self._api_key = api_key
        self._token_manager = None if api_key else token_manager
        self._refresh_transport = refresh_transport
        # Signatures are keyed by the API key, so JWT mode never signs.
        self._sign_requests = bool(api_key) and (True if sign_requests is None else sign_requests)
        self._audit_logger = audit_logger

    @property
    def signs_requests(self) -> bool:
        return self._sign_requests

    def sync_auth_flow(
        self, request: httpx.Request
    ) -> Generator[httpx.Request, httpx.Response, None]:
        raise RuntimeError("VaultAuth requires httpx.AsyncClient")

    async def async_auth_flow(
        self, request: httpx.Request
    ) -> AsyncGenerator[httpx.Request, httpx.Response]:
        started = time.monotonic()

        if self._token_manager is not None:
            await self._refresh_if_stale()
            request.headers["Authorization"] = f"Bearer {self._token_manager.access_token}"
        else:
            request.headers["Authorization"] = f"Bearer {self._api_key}"
            if self._sign_requests and should_sign(request.method):
                request.headers.update(
                    sign_request(
                        self._api_key,
                        request.method,
                        _request_path(request),
                        request.content,
                    )
                )

        response = yield request

        if self._can_retry_after_refresh(request, response):
            try:
                new_token = await self._token_manager.refresh(self._refresh_transport)
            except SDKError as exc:
                logger.warning("Token refresh after 401 failed: %s", exc)
            else:
                request.headers["Authorization"] = f"Bearer {new_token}"
                request.headers[RETRY_HEADER] = "1"
                response = yield request

        await self._record(request, response, started)

    async def _refresh_if_stale(self) -> None:
        manager = self._token_manager
        if self._refresh_transport is None or not manager.refresh_token:
            return
        if not manager.needs_refresh():
            return
        try:
            await manager.refresh(self._refresh_transport)
        except SDKError as exc:
            # Send with the current token; a 401 gets one more attempt.
            logger.warning("Proactive token refresh failed: %s", exc)

    def _can_retry_after_refresh(
        self, request: httpx.Request, response: httpx.Response
    ) -> bool:
        return (
            response.status_code == 401
            and RETRY_HEADER not in request.headers
            and self._token_manager is not None
            and self._refresh_transport is not None
            and bool(self._token_manager.refresh_token)
        )

    async def _record(
        self, request: httpx.Request, response: httpx.Response, started: float
    ) -> None:
        if self._audit_logger is None:
            return
        entry = AuditEntry(
            timestamp=format_timestamp(),
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            duration_ms=int((time.monotonic() - started) * 1000),
        )
        try:
            await anyio.to_thread.run_sync(self._audit_logger.log, entry)
        except OSError as exc:
            logger.warning("Failed to write audit log entry: %s", exc)


__all__ = ["RETRY_HEADER", "VaultAuth"]
