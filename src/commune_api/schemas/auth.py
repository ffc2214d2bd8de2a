"""Account and session schemas."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class SignupRequest(BaseModel):
    """Schema for creating an account.

    Login name and password rules are enforced by the account service so the
    error messages stay the same for every client.
    """

    login_name: str = Field(..., max_length=50)
    password: str = Field(..., max_length=200)
    email: str | None = Field(None, max_length=320)


class LoginRequest(BaseModel):
    login_name: str
    password: str


class UserResponse(BaseModel):
    id: int
    login_name: str
    email: str | None
    is_admin: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SessionResponse(BaseModel):
    """Issued session. Console clients receive the same token as a cookie."""

    token: str
    expires_at: datetime
    community_id: int | None
    user: UserResponse
