"""Lifestream Vault SDK security core: credentials, request signing and payload encryption."""

from .client import VaultClient
from .clients import AuthHttpClient, VaultAuth
from .core.config import SDKSettings, get_settings
from .services.audit_log import AuditEntry, AuditLogger
from .services.payload_cipher import (
    PayloadCipherService,
    decrypt,
    encrypt,
    generate_key,
    is_envelope,
)
from .services.request_signer import sign_request
from .services.token_manager import TokenManager, decode_jwt_payload, is_token_expired

__version__ = "0.1.0"
__all__ = [
    "AuditEntry",
    "AuditLogger",
    "AuthHttpClient",
    "PayloadCipherService",
    "SDKSettings",
    "TokenManager",
    "VaultAuth",
    "VaultClient",
    "decode_jwt_payload",
    "decrypt",
    "encrypt",
    "generate_key",
    "get_settings",
    "is_envelope",
    "is_token_expired",
    "sign_request",
]
