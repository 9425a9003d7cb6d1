"""
Unauthenticated HTTP client for the API's auth endpoints.

Used for login and as the refresh transport of :class:`TokenManager`. It never
attaches Authorization headers, so a refresh cannot recurse into another
refresh.
"""

from __future__ import annotations

import inspect
import logging
import re
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, Tuple, Union

import httpx
from pydantic import ValidationError as SchemaValidationError

from vault_sdk.core.config import DEFAULT_API_URL
from vault_sdk.core.errors import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    NetworkError,
    NotFoundError,
    RateLimitError,
    SDKError,
    ValidationError,
)
from vault_sdk.models.tokens import AuthTokens, MfaChallenge
from vault_sdk.services.token_manager import REFRESH_COOKIE

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1/"
_REFRESH_COOKIE_RE = re.compile(rf"{REFRESH_COOKIE}=([^;]+)")

MfaCallback = Callable[
    [MfaChallenge], Union[Tuple[str, str], Awaitable[Tuple[str, str]]]
]


@dataclass(frozen=True)
class LoginResult:
    tokens: AuthTokens
    refresh_token: Optional[str]


def api_prefix_url(base_url: str) -> str:
    """Return the versioned API root for ``base_url``."""
    return base_url.rstrip("/") + API_PREFIX


def error_from_response(
    response: httpx.Response, resource: str = "Resource", identifier: str = ""
) -> SDKError:
    """Map an error response to the matching typed SDK error."""
    try:
        body = response.json()
    except ValueError:
        body = {}
    if not isinstance(body, dict):
        body = {}
    message = body.get("message") or response.reason_phrase or "Request failed"
    status_code = response.status_code

    if status_code == 400:
        return ValidationError(message, body.get("details"))
    if status_code == 401:
        return AuthenticationError(message)
    if status_code == 403:
        return AuthorizationError(message)
    if status_code == 404:
        return NotFoundError(resource, identifier)
    if status_code == 409:
        return ConflictError(message)
    if status_code == 429:
        return RateLimitError(message)
    return SDKError(message, status_code)


def extract_refresh_token(response: httpx.Response) -> Optional[str]:
    """Pull the refresh token out of the ``Set-Cookie`` headers, if present."""
    for header in response.headers.get_list("set-cookie"):
        match = _REFRESH_COOKIE_RE.search(header)
        if match:
            return match.group(1)
    return None


class AuthHttpClient:
    """POST JSON to auth endpoints and parse the JSON reply."""

    def __init__(
        self,
        base_url: str = DEFAULT_API_URL,
        *,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=api_prefix_url(base_url),
            timeout=timeout,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "AuthHttpClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def _post(
        self,
        path: str,
        *,
        headers: Optional[Mapping[str, str]] = None,
        json: Any = None,
    ) -> httpx.Response:
        try:
            response = await self._client.post(path, headers=headers, json=json)
        except httpx.HTTPError as exc:
            raise NetworkError(f"Network request failed: {exc}") from exc
        if response.is_error:
            raise error_from_response(response)
        return response

    @staticmethod
    def _json(response: httpx.Response) -> Dict[str, Any]:
        try:
            payload = response.json()
        except ValueError as exc:
            raise SDKError(
                "API returned a non-JSON response.", response.status_code
            ) from exc
        if not isinstance(payload, dict):
            raise SDKError("API returned an unexpected JSON body.", response.status_code)
        return payload

    async def post_json(
        self,
        path: str,
        *,
        headers: Optional[Mapping[str, str]] = None,
        json: Any = None,
    ) -> Dict[str, Any]:
        """POST ``json`` to ``path`` and return the decoded object body."""
        return self._json(await self._post(path, headers=headers, json=json))

    async def login(
        self,
        email: str,
        password: str,
        *,
        mfa_code: Optional[str] = None,
        on_mfa_required: Optional[MfaCallback] = None,
    ) -> LoginResult:
        """
        Authenticate with email and password.

        When the account has MFA enabled, ``mfa_code`` is submitted as a TOTP
        code; otherwise ``on_mfa_required`` is called with the challenge and
        must return ``(method, code)`` where method is ``"totp"`` or
        ``"backup_code"``.
        """
        response = await self._post(
            "auth/login", json={"email": email, "password": password}
        )
        data = self._json(response)

        if data.get("mfaRequired") is True:
            challenge = MfaChallenge.model_validate(data)
            if mfa_code:
                method, code = "totp", mfa_code
            elif on_mfa_required is not None:
                result = on_mfa_required(challenge)
                if inspect.isawaitable(result):
                    result = await result
                method, code = result
            else:
                raise ValidationError(
                    "MFA is required but no MFA code or callback provided. "
                    f"Available methods: {', '.join(challenge.methods)}"
                )

            endpoint = "auth/mfa/totp" if method == "totp" else "auth/mfa/backup-code"
            logger.info("Submitting MFA verification via %s", endpoint)
            response = await self._post(
                endpoint, json={"mfaToken": challenge.mfa_token, "code": code}
            )
            data = self._json(response)

        try:
            tokens = AuthTokens.model_validate(data)
        except SchemaValidationError as exc:
            raise AuthenticationError("Incomplete login payload returned from API.") from exc

        return LoginResult(tokens=tokens, refresh_token=extract_refresh_token(response))


__all__ = [
    "API_PREFIX",
    "AuthHttpClient",
    "LoginResult",
    "api_prefix_url",
    "error_from_response",
    "extract_refresh_token",
]
