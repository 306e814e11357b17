"""Authentication schemas for Supabase auth responses.

This module defines Pydantic models for auth users, sessions and the
results returned by auth operations.
"""

import time
from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from insura_ops.utils.errors import FriendlyError
from insura_ops.schemas.enums import UserRole


class AuthUser(BaseModel):
    """Identity record owned by the auth API."""

    model_config = ConfigDict(extra="ignore")

    id: str = Field(..., description="Auth user ID")
    email: Optional[str] = Field(None, description="User email")
    role: Optional[str] = Field(None, description="Backend role claim")
    phone: Optional[str] = None
    user_metadata: Dict[str, Any] = Field(default_factory=dict)
    app_metadata: Dict[str, Any] = Field(default_factory=dict)
    email_confirmed_at: Optional[datetime] = None
    last_sign_in_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @property
    def display_name(self) -> str:
        full_name = self.user_metadata.get("full_name")
        if full_name:
            return str(full_name)
        return (self.email or "").split("@")[0]


class Session(BaseModel):
    """Token pair issued by the auth API."""

    model_config = ConfigDict(extra="ignore")

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int = 3600
    expires_at: Optional[int] = None
    user: Optional[AuthUser] = None

    def model_post_init(self, __context) -> None:
        if self.expires_at is None:
            self.expires_at = int(time.time()) + self.expires_in

    def is_expired(self, leeway: int = 30) -> bool:
        return self.expires_at <= int(time.time()) + leeway


class AuthResponse(BaseModel):
    """User and (when issued) session returned by sign-in style calls."""

    user: Optional[AuthUser] = None
    session: Optional[Session] = None


class LoginResult(BaseModel):
    success: bool
    role: Optional[UserRole] = None
    error: Optional[FriendlyError] = None


class SignUpResult(BaseModel):
    success: bool
    user: Optional[AuthUser] = None
    message: Optional[str] = None
    error: Optional[FriendlyError] = None


class ActionResult(BaseModel):
    """Outcome of an auth action that returns no data."""

    success: bool
    error: Optional[FriendlyError] = None
    notice: Optional[FriendlyError] = None


__all__ = [
    "AuthUser",
    "Session",
    "AuthResponse",
    "LoginResult",
    "SignUpResult",
    "ActionResult",
]
