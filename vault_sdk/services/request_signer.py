"""HMAC-SHA256 request signing with anti-replay metadata.

The signed material is the canonical payload::

    METHOD\\nPATH\\nTIMESTAMP\\nNONCE\\nSHA256_HEX(BODY)

The body is hashed rather than embedded, so large or binary bodies sign the
same way as small ones. Verification happens server-side; a verifier rejects
timestamps older than :data:`MAX_TIMESTAMP_AGE_MS`.
"""

from __future__ import annotations

import hashlib
import hmac
import os
from datetime import datetime, timezone
from typing import Dict, Optional, Union

SIGNATURE_HEADER = "x-signature"
SIGNATURE_TIMESTAMP_HEADER = "x-signature-timestamp"
SIGNATURE_NONCE_HEADER = "x-signature-nonce"

MAX_TIMESTAMP_AGE_MS = 5 * 60 * 1000

NONCE_LENGTH_BYTES = 16

SIGNED_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})

Body = Union[bytes, bytearray, memoryview, str, None]


def _body_bytes(body: Body) -> bytes:
    if body is None:
        return b""
    if isinstance(body, str):
        return body.encode("utf-8")
    return bytes(body)


def format_timestamp(moment: Optional[datetime] = None) -> str:
    """Render ``moment`` (default: now) as ISO-8601 UTC with milliseconds."""
    moment = moment or datetime.now(timezone.utc)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def build_canonical_payload(
    method: str,
    path: str,
    timestamp: str,
    nonce: str,
    body: Body = b"",
) -> str:
    """Return the newline-joined string a request signature is computed over."""
    body_hash = hashlib.sha256(_body_bytes(body)).hexdigest()
    return "\n".join((method.upper(), path, timestamp, nonce, body_hash))


def sign_payload(secret: str, payload: str) -> str:
    """HMAC-SHA256 of ``payload`` keyed directly by ``secret``, hex-encoded."""
    return hmac.new(
        secret.encode("utf-8"), payload.encode("utf-8"), hashlib.sha256
    ).hexdigest()


def generate_nonce() -> str:
    """Return 16 random bytes as 32 hex characters."""
    return os.urandom(NONCE_LENGTH_BYTES).hex()


def sign_request(
    secret: str,
    method: str,
    path: str,
    body: Body = b"",
    *,
    timestamp: Optional[str] = None,
    nonce: Optional[str] = None,
) -> Dict[str, str]:
    """Sign a request and return the three signature headers to attach.

    ``timestamp`` and ``nonce`` are generated when omitted; passing them makes
    the result fully deterministic.
    """
    timestamp = timestamp or format_timestamp()
    nonce = nonce or generate_nonce()
    payload = build_canonical_payload(method, path, timestamp, nonce, body)
    return {
        SIGNATURE_HEADER: sign_payload(secret, payload),
        SIGNATURE_TIMESTAMP_HEADER: timestamp,
        SIGNATURE_NONCE_HEADER: nonce,
    }


def should_sign(method: str) -> bool:
    """Only mutating requests carry signatures."""
    return method.upper() in SIGNED_METHODS


__all__ = [
    "MAX_TIMESTAMP_AGE_MS",
    "NONCE_LENGTH_BYTES",
    "SIGNATURE_HEADER",
    "SIGNATURE_NONCE_HEADER",
    "SIGNATURE_TIMESTAMP_HEADER",
    "SIGNED_METHODS",
    "build_canonical_payload",
    "format_timestamp",
    "generate_nonce",
    "should_sign",
    "sign_payload",
    "sign_request",
]
