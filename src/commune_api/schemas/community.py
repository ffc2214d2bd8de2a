"""Community-related Pydantic schemas."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, HttpUrl, model_validator

from commune_api.models import MembershipRole

from .common import SLUG_PATTERN, USERNAME_PATTERN


class CommunityCreate(BaseModel):
    """Schema for creating a community together with the owner's first profile."""

    name: str = Field(..., min_length=1, max_length=100)
    slug: str = Field(..., min_length=1, max_length=63, pattern=SLUG_PATTERN)
    description: str | None = Field(None, max_length=5000)
    starts_at: datetime
    ends_at: datetime
    is_recruiting: bool = False
    recruiting_starts_at: datetime | None = None
    recruiting_ends_at: datetime | None = None
    minimum_birth_year: int | None = Field(None, ge=1900, le=2100)
    profile_name: str = Field(..., min_length=1, max_length=100)
    profile_username: str = Field(..., min_length=1, max_length=50, pattern=USERNAME_PATTERN)

    @model_validator(mode="after")
    def _check_periods(self) -> CommunityCreate:
        if self.ends_at <= self.starts_at:
            raise ValueError("ends_at must be after starts_at")
        if (
            self.recruiting_starts_at is not None
            and self.recruiting_ends_at is not None
            and self.recruiting_ends_at <= self.recruiting_starts_at
        ):
            raise ValueError("recruiting_ends_at must be after recruiting_starts_at")
        return self


class CommunityUpdate(BaseModel):
    """Partial update; only fields present in the request are applied."""

    name: str | None = Field(None, min_length=1, max_length=100)
    description: str | None = Field(None, max_length=5000)
    starts_at: datetime | None = None
    ends_at: datetime | None = None
    is_recruiting: bool | None = None
    recruiting_starts_at: datetime | None = None
    recruiting_ends_at: datetime | None = None
    minimum_birth_year: int | None = Field(None, ge=1900, le=2100)
    custom_domain: str | None = Field(None, max_length=253)
    mute_new_members: bool | None = None


class CommunityResponse(BaseModel):
    id: int
    name: str
    slug: str
    description: str | None
    starts_at: datetime
    ends_at: datetime
    is_recruiting: bool
    recruiting_starts_at: datetime | None
    recruiting_ends_at: datetime | None
    minimum_birth_year: int | None
    custom_domain: str | None
    domain_verified_at: datetime | None
    mute_new_members: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class UserCommunityResponse(BaseModel):
    community: CommunityResponse
    role: MembershipRole
    pending_application_count: int | None = None

    model_config = ConfigDict(from_attributes=True)


class LinkCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    url: HttpUrl


class LinkUpdate(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=200)
    url: HttpUrl | None = None


class LinkResponse(BaseModel):
    id: int
    title: str
    url: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
