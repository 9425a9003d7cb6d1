"""Domain models."""

from .tokens import AuthTokens, AuthUser, MfaChallenge

__all__ = ["AuthTokens", "AuthUser", "MfaChallenge"]
