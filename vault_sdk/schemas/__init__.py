"""Wire schemas shared across the SDK."""

from .envelope import EncryptedEnvelopeV1

__all__ = ["EncryptedEnvelopeV1"]
