"""Schemas for client-side encrypted document content."""

from __future__ import annotations

import re
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

_HEX_RE = re.compile(r"^(?:[0-9a-fA-F]{2})*$")


class EncryptedEnvelopeV1(BaseModel):
    """Version 1 envelope: AES-256-GCM with a 96-bit IV and 128-bit tag."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    version: Literal[1] = 1
    algorithm: Literal["aes-256-gcm"] = "aes-256-gcm"
    iv: str = Field(..., min_length=24, max_length=24, description="12-byte IV, hex.")
    auth_tag: str = Field(
        ...,
        alias="authTag",
        min_length=32,
        max_length=32,
        description="16-byte GCM authentication tag, hex.",
    )
    ciphertext: str = Field(..., description="Ciphertext bytes, hex.")

    @field_validator("iv", "auth_tag", "ciphertext")
    @classmethod
    def _require_hex(cls, value: str) -> str:
        if not _HEX_RE.match(value):
            raise ValueError("must be an even-length hex string")
        return value

    def to_json(self) -> str:
        """Serialize with the wire field names in their fixed order."""
        return self.model_dump_json(by_alias=True)


__all__ = ["EncryptedEnvelopeV1"]
