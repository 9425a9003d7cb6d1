"""Service layer exports."""

from .audit_log import AuditEntry, AuditLogger
from .payload_cipher import PayloadCipherService
from .token_manager import TokenManager

__all__ = [
    "AuditEntry",
    "AuditLogger",
    "PayloadCipherService",
    "TokenManager",
]
