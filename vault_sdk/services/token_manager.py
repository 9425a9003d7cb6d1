"""
Access-token lifecycle: expiry detection and deduplicated refresh.
"""

from __future__ import annotations

import asyncio
import base64
import inspect
import json
import logging
import math
import time
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, Protocol, Union

from pydantic import ValidationError as SchemaValidationError

from vault_sdk.core.errors import NoRefreshTokenError, RefreshExchangeFailedError
from vault_sdk.models.tokens import AuthTokens

logger = logging.getLogger(__name__)

DEFAULT_REFRESH_BUFFER_MS = 60_000
REFRESH_PATH = "auth/refresh"
REFRESH_COOKIE = "lsv_refresh"
CLIENT_MARKER_HEADER = "X-Requested-With"
CLIENT_MARKER = "LifestreamVaultSDK"

OnTokenRefresh = Callable[[AuthTokens], Union[None, Awaitable[None]]]


class RefreshTransport(Protocol):
    """Minimal POST-and-parse-JSON capability that attaches no auth headers."""

    async def post_json(
        self,
        path: str,
        *,
        headers: Optional[Mapping[str, str]] = None,
        json: Any = None,
    ) -> Dict[str, Any]: ...


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Non-standard JSON constant {name}")


def decode_jwt_payload(token: str) -> Optional[Dict[str, Any]]:
    """Decode the claims segment of a JWT without verifying it.

    Returns ``None`` for anything that is not a three-segment token with a
    base64url JSON object in the middle. ``NaN`` and ``Infinity`` literals
    are not JSON and make the token unreadable. Never raises.
    """
    try:
        parts = token.split(".")
        if len(parts) != 3:
            return None
        segment = parts[1]
        padded = segment + "=" * (-len(segment) % 4)
        claims = json.loads(
            base64.urlsafe_b64decode(padded.encode("ascii")),
            parse_constant=_reject_constant,
        )
    except (AttributeError, TypeError, ValueError, RecursionError):
        return None
    if not isinstance(claims, dict):
        return None
    return claims


def is_token_expired(
    token: str,
    buffer_ms: int = DEFAULT_REFRESH_BUFFER_MS,
    *,
    now: Optional[float] = None,
) -> bool:
    """Return True when ``token`` is expired, expiring within ``buffer_ms``, or unreadable."""
    claims = decode_jwt_payload(token)
    if not claims:
        return True
    exp = claims.get("exp")
    if isinstance(exp, bool) or not isinstance(exp, (int, float)) or not exp:
        return True
    if isinstance(exp, float) and not math.isfinite(exp):
        return True

    now_ms = (time.time() if now is None else now) * 1000
    return now_ms > exp * 1000 - buffer_ms


class TokenManager:
    """Holds the access/refresh pair and refreshes it at most once at a time.

    Concurrent callers of :meth:`refresh` share one in-flight exchange and
    observe the same new token or the same failure. The in-flight slot is
    cleared whenever the exchange settles, so a failed refresh can be retried
    by the next caller.
    """

    def __init__(
        self,
        access_token: str,
        refresh_token: Optional[str] = None,
        *,
        refresh_buffer_ms: int = DEFAULT_REFRESH_BUFFER_MS,
        on_token_refresh: Optional[OnTokenRefresh] = None,
        refresh_path: str = REFRESH_PATH,
    ) -> None:
        self._access_token = access_token
        self._refresh_token = refresh_token
        self._refresh_buffer_ms = refresh_buffer_ms
        self._on_token_refresh = on_token_refresh
        self._refresh_path = refresh_path
        self._refresh_task: Optional[asyncio.Task[str]] = None

    @property
    def access_token(self) -> str:
        return self._access_token

    @access_token.setter
    def access_token(self, token: str) -> None:
        self._access_token = token

    @property
    def refresh_token(self) -> Optional[str]:
        return self._refresh_token

    @refresh_token.setter
    def refresh_token(self, token: Optional[str]) -> None:
        self._refresh_token = token

    @property
    def refresh_buffer_ms(self) -> int:
        return self._refresh_buffer_ms

    @property
    def is_refreshing(self) -> bool:
        return self._refresh_task is not None and not self._refresh_task.done()

    def needs_refresh(self) -> bool:
        """Check whether the current access token should be refreshed."""
        return is_token_expired(self._access_token, self._refresh_buffer_ms)

    async def refresh(self, transport: RefreshTransport) -> str:
        """Exchange the refresh token for a new access token.

        Args:
            transport: HTTP capability used for the exchange. It must not
                decorate requests with auth headers itself.

        Raises:
            NoRefreshTokenError: no refresh token is held; nothing is sent.
            RefreshExchangeFailedError: the exchange failed. The access token
                is left unchanged.
        """
        if not self._refresh_token:
            raise NoRefreshTokenError()

        task = self._refresh_task
        if task is None or task.done():
            task = asyncio.ensure_future(self._perform_refresh(transport))
            task.add_done_callback(self._clear_refresh_task)
            self._refresh_task = task
        else:
            logger.debug("Joining in-flight token refresh")

        # A cancelled waiter must not cancel the exchange other callers share.
        return await asyncio.shield(task)

    def _clear_refresh_task(self, task: "asyncio.Task[str]") -> None:
        if self._refresh_task is task:
            self._refresh_task = None
        if not task.cancelled():
            # Mark the outcome retrieved even if every waiter went away.
            task.exception()

    async def _perform_refresh(self, transport: RefreshTransport) -> str:
        headers = {
            CLIENT_MARKER_HEADER: CLIENT_MARKER,
            "Cookie": f"{REFRESH_COOKIE}={self._refresh_token}",
        }
        logger.info("Refreshing access token")
        try:
            payload = await transport.post_json(self._refresh_path, headers=headers)
        except Exception as exc:
            logger.warning("Token refresh exchange failed: %s", type(exc).__name__)
            raise RefreshExchangeFailedError(
                f"Token refresh failed: {exc}",
                getattr(exc, "status_code", None),
            ) from exc

        try:
            tokens = AuthTokens.model_validate(payload)
        except SchemaValidationError as exc:
            logger.warning("Token refresh returned an incomplete payload")
            raise RefreshExchangeFailedError(
                "Incomplete refresh payload returned from API."
            ) from exc

        self._access_token = tokens.access_token
        if self._on_token_refresh is not None:
            result = self._on_token_refresh(tokens)
            if inspect.isawaitable(result):
                await result
        return tokens.access_token


__all__ = [
    "CLIENT_MARKER",
    "CLIENT_MARKER_HEADER",
    "DEFAULT_REFRESH_BUFFER_MS",
    "OnTokenRefresh",
    "REFRESH_COOKIE",
    "REFRESH_PATH",
    "RefreshTransport",
    "TokenManager",
    "decode_jwt_payload",
    "is_token_expired",
]
