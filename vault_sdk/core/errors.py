"""
Exception hierarchy shared by the SDK security core and its HTTP helpers.
"""

from __future__ import annotations

from typing import Any, Optional


class SDKError(Exception):
    """Base class for every error raised by the SDK."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ValidationError(SDKError):
    """Raised when the API rejects input or the client is misconfigured."""

    def __init__(self, message: str, details: Any = None) -> None:
        super().__init__(message, 400)
        self.details = details


class AuthenticationError(SDKError):
    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(message, 401)


class AuthorizationError(SDKError):
    def __init__(self, message: str = "Permission denied") -> None:
        super().__init__(message, 403)


class NotFoundError(SDKError):
    def __init__(self, resource: str, identifier: str = "") -> None:
        super().__init__(f"{resource} not found: {identifier}", 404)


class ConflictError(SDKError):
    def __init__(self, message: str) -> None:
        super().__init__(message, 409)


class RateLimitError(SDKError):
    def __init__(self, message: str = "Rate limit exceeded") -> None:
        super().__init__(message, 429)


class NetworkError(SDKError):
    """Raised when a request never produced an HTTP response."""


class PayloadCipherError(SDKError):
    """Base class for client-side encryption failures."""


class InvalidKeyLengthError(PayloadCipherError):
    """Raised when a key does not decode to exactly 32 bytes."""


class MalformedEnvelopeError(PayloadCipherError):
    """Raised when an envelope cannot be parsed."""


class UnsupportedVersionError(PayloadCipherError):
    """Raised for envelope versions this client cannot read."""


class UnsupportedAlgorithmError(PayloadCipherError):
    """Raised for envelope algorithms this client cannot read."""


class DecryptionFailedError(PayloadCipherError):
    """Raised when authenticated decryption fails (wrong key or tampering)."""


class NoRefreshTokenError(SDKError):
    """Raised when a refresh is requested without a refresh token."""

    def __init__(self, message: str = "No refresh token available") -> None:
        super().__init__(message, 401)


class RefreshExchangeFailedError(SDKError):
    """Raised when the refresh exchange with the API did not yield a token."""


__all__ = [
    "AuthenticationError",
    "AuthorizationError",
    "ConflictError",
    "DecryptionFailedError",
    "InvalidKeyLengthError",
    "MalformedEnvelopeError",
    "NetworkError",
    "NoRefreshTokenError",
    "NotFoundError",
    "PayloadCipherError",
    "RateLimitError",
    "RefreshExchangeFailedError",
    "SDKError",
    "UnsupportedAlgorithmError",
    "UnsupportedVersionError",
    "ValidationError",
]
