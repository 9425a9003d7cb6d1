"""
Domain models for authentication tokens returned by login and refresh.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class AuthUser(BaseModel):
    """Account summary returned alongside an access token."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str
    email: str
    name: Optional[str] = Field(None, alias="displayName")
    role: Optional[str] = None


class AuthTokens(BaseModel):
    """Access token plus the account it was issued for."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    access_token: str = Field(..., alias="accessToken", min_length=1)
    user: Optional[AuthUser] = None


class MfaChallenge(BaseModel):
    """Login response when the account requires a second factor."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    mfa_required: bool = Field(True, alias="mfaRequired")
    mfa_token: str = Field(..., alias="mfaToken")
    methods: list[str] = Field(default_factory=list, alias="mfaMethods")


__all__ = ["AuthTokens", "AuthUser", "MfaChallenge"]
