"""Expose constructed client wrappers."""

from .auth_http import AuthHttpClient, LoginResult
from .vault_auth import VaultAuth

__all__ = ["AuthHttpClient", "LoginResult", "VaultAuth"]
