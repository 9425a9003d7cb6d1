"""Authenticated client-side encryption for document content.

Content is encrypted with AES-256-GCM and wrapped in a self-describing JSON
envelope::

    {"version":1,"algorithm":"aes-256-gcm","iv":"<24 hex>","authTag":"<32 hex>","ciphertext":"<hex>"}

Each envelope pins its own version and algorithm, so decryption dispatches on
``version`` through a registry of schemes. Adding a scheme means registering a
new entry rather than branching inside :func:`decrypt`. Key material is never
written into the envelope.
"""

from __future__ import annotations

import json
import os
from typing import Any, Dict, Protocol, Union

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from pydantic import ValidationError as SchemaValidationError

from vault_sdk.core.errors import (
    DecryptionFailedError,
    InvalidKeyLengthError,
    MalformedEnvelopeError,
    UnsupportedAlgorithmError,
    UnsupportedVersionError,
)
from vault_sdk.schemas.envelope import EncryptedEnvelopeV1

KEY_LENGTH_BYTES = 32
IV_LENGTH_BYTES = 12
AUTH_TAG_LENGTH_BYTES = 16

Plaintext = Union[bytes, bytearray, memoryview, str]


class EnvelopeScheme(Protocol):
    version: int
    algorithm: str

    def seal(self, plaintext: bytes, key: bytes) -> str: ...

    def open(self, data: Dict[str, Any], key: bytes) -> bytes: ...


class AesGcmV1Scheme:
    """AES-256-GCM, random 96-bit IV, detached 128-bit tag, no associated data."""

    version = 1
    algorithm = "aes-256-gcm"

    def seal(self, plaintext: bytes, key: bytes) -> str:
        iv = os.urandom(IV_LENGTH_BYTES)
        # AESGCM appends the tag to the ciphertext.
        sealed = AESGCM(key).encrypt(iv, plaintext, None)
        envelope = EncryptedEnvelopeV1(
            iv=iv.hex(),
            auth_tag=sealed[-AUTH_TAG_LENGTH_BYTES:].hex(),
            ciphertext=sealed[:-AUTH_TAG_LENGTH_BYTES].hex(),
        )
        return envelope.to_json()

    def open(self, data: Dict[str, Any], key: bytes) -> bytes:
        algorithm = data.get("algorithm")
        if algorithm != self.algorithm:
            raise UnsupportedAlgorithmError(
                f"Unsupported encryption algorithm: {algorithm}"
            )
        try:
            envelope = EncryptedEnvelopeV1.model_validate(data)
        except SchemaValidationError as exc:
            raise MalformedEnvelopeError(
                "Invalid encrypted envelope: missing or malformed fields"
            ) from exc

        iv = bytes.fromhex(envelope.iv)
        sealed = bytes.fromhex(envelope.ciphertext) + bytes.fromhex(envelope.auth_tag)
        try:
            return AESGCM(key).decrypt(iv, sealed, None)
        except InvalidTag as exc:
            raise DecryptionFailedError(
                "Failed to decrypt content; wrong key or tampered envelope."
            ) from exc


_SCHEMES: Dict[int, EnvelopeScheme] = {AesGcmV1Scheme.version: AesGcmV1Scheme()}
CURRENT_VERSION = AesGcmV1Scheme.version


def _decode_key(key_hex: str) -> bytes:
    try:
        key = bytes.fromhex(key_hex)
    except (TypeError, ValueError) as exc:
        raise InvalidKeyLengthError(
            f"Invalid key length: expected {KEY_LENGTH_BYTES} bytes of hex key material"
        ) from exc
    if len(key) != KEY_LENGTH_BYTES:
        raise InvalidKeyLengthError(
            f"Invalid key length: expected {KEY_LENGTH_BYTES} bytes, got {len(key)}"
        )
    return key


def _as_bytes(plaintext: Plaintext) -> bytes:
    if isinstance(plaintext, str):
        return plaintext.encode("utf-8")
    return bytes(plaintext)


def _is_version(value: Any) -> bool:
    # bool and float would otherwise compare equal to integer versions.
    return type(value) is int


def generate_key() -> str:
    """Return a random 256-bit key as 64 lowercase hex characters."""
    return os.urandom(KEY_LENGTH_BYTES).hex()


def encrypt(plaintext: Plaintext, key_hex: str) -> str:
    """Encrypt ``plaintext`` and return the serialized envelope.

    A fresh IV is drawn on every call, so identical inputs never yield
    identical envelopes.
    """
    key = _decode_key(key_hex)
    return _SCHEMES[CURRENT_VERSION].seal(_as_bytes(plaintext), key)


def decrypt(envelope_json: str, key_hex: str) -> bytes:
    """Verify and decrypt an envelope produced by :func:`encrypt`.

    Raises:
        InvalidKeyLengthError: ``key_hex`` is not 32 bytes of hex.
        MalformedEnvelopeError: the envelope is not a JSON object with the
            fields its version requires.
        UnsupportedVersionError: the envelope version is unknown.
        UnsupportedAlgorithmError: the algorithm does not match the version.
        DecryptionFailedError: authentication failed.
    """
    key = _decode_key(key_hex)

    try:
        data = json.loads(envelope_json)
    except (TypeError, ValueError, RecursionError) as exc:
        raise MalformedEnvelopeError("Invalid encrypted envelope: not valid JSON") from exc
    if not isinstance(data, dict):
        raise MalformedEnvelopeError("Invalid encrypted envelope: expected a JSON object")

    version = data.get("version")
    scheme = _SCHEMES.get(version) if _is_version(version) else None
    if scheme is None:
        raise UnsupportedVersionError(
            f"Unsupported encryption envelope version: {version}"
        )
    return scheme.open(data, key)


def decrypt_text(envelope_json: str, key_hex: str) -> str:
    """Decrypt an envelope whose plaintext is UTF-8 text."""
    return decrypt(envelope_json, key_hex).decode("utf-8")


def is_envelope(text: str) -> bool:
    """Cheap structural check for a version 1 envelope. Performs no crypto."""
    try:
        parsed = json.loads(text)
    except (TypeError, ValueError, RecursionError):
        return False
    if not isinstance(parsed, dict):
        return False
    return (
        _is_version(parsed.get("version"))
        and parsed["version"] == 1
        and parsed.get("algorithm") == AesGcmV1Scheme.algorithm
        and isinstance(parsed.get("iv"), str)
        and isinstance(parsed.get("authTag"), str)
        and isinstance(parsed.get("ciphertext"), str)
    )


class PayloadCipherService:
    """Encrypt and decrypt document content with a single per-document key."""

    def __init__(self, *, key_hex: str) -> None:
        _decode_key(key_hex)
        self._key_hex = key_hex

    def encrypt(self, plaintext: Plaintext) -> str:
        return encrypt(plaintext, self._key_hex)

    def decrypt(self, envelope_json: str) -> bytes:
        return decrypt(envelope_json, self._key_hex)

    def decrypt_text(self, envelope_json: str) -> str:
        return decrypt_text(envelope_json, self._key_hex)

    def reveal(self, content: str) -> str:
        """Return ``content`` decrypted when it is an envelope, unchanged otherwise."""
        if is_envelope(content):
            return self.decrypt_text(content)
        return content


__all__ = [
    "AUTH_TAG_LENGTH_BYTES",
    "AesGcmV1Scheme",
    "CURRENT_VERSION",
    "IV_LENGTH_BYTES",
    "KEY_LENGTH_BYTES",
    "PayloadCipherService",
    "decrypt",
    "decrypt_text",
    "encrypt",
    "generate_key",
    "is_envelope",
]
