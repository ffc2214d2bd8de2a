"""Profile schemas."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from commune_api.models import ProfileRole

from .common import USERNAME_PATTERN


class ProfileCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    username: str = Field(..., min_length=1, max_length=50, pattern=USERNAME_PATTERN)
    bio: str | None = Field(None, max_length=1000)
    is_primary: bool = False


class ProfileUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=100)
    username: str | None = Field(None, min_length=1, max_length=50, pattern=USERNAME_PATTERN)
    bio: str | None = Field(None, max_length=1000)


class ProfileSummary(BaseModel):
    id: int
    name: str
    username: str

    model_config = ConfigDict(from_attributes=True)


class ProfileResponse(BaseModel):
    id: int
    community_id: int
    name: str
    username: str
    bio: str | None
    is_primary: bool
    is_muted: bool
    activated_at: datetime | None
    last_active_at: datetime | None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class MyProfileResponse(ProfileResponse):
    """A profile as seen by one of its users, with that user's grant."""

    role: ProfileRole


class UsernameAvailability(BaseModel):
    username: str
    available: bool


class ShareRequest(BaseModel):
    """Share with the user behind ``username``, one of their own profiles here."""

    username: str = Field(..., min_length=1, max_length=50, pattern=USERNAME_PATTERN)
    role: ProfileRole = ProfileRole.ADMIN


class SharedUserResponse(BaseModel):
    user_id: int
    login_name: str
    role: ProfileRole
    created_at: datetime
