"""Membership application schemas."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from commune_api.models import ApplicationStatus

from .common import USERNAME_PATTERN


class ApplicationCreate(BaseModel):
    profile_name: str = Field(..., min_length=1, max_length=100)
    profile_username: str = Field(..., min_length=1, max_length=50, pattern=USERNAME_PATTERN)
    message: str | None = Field(None, max_length=5000)
    attachment_image_ids: list[int] = Field(default_factory=list, max_length=10)


class ApplicationReject(BaseModel):
    reason: str | None = Field(None, max_length=1000)


class ApplicationAttachmentResponse(BaseModel):
    id: int
    image_id: int

    model_config = ConfigDict(from_attributes=True)


class ApplicationResponse(BaseModel):
    id: int
    user_id: int
    community_id: int
    profile_name: str
    profile_username: str
    message: str | None
    status: ApplicationStatus
    reviewed_at: datetime | None
    reviewed_by_id: int | None
    rejection_reason: str | None
    created_at: datetime
    attachments: list[ApplicationAttachmentResponse] = []

    model_config = ConfigDict(from_attributes=True)


class ApplicationStatistics(BaseModel):
    pending: int
    approved: int
    rejected: int
    total: int


class ApprovalResponse(BaseModel):
    application: ApplicationResponse
    membership_id: int
    profile_id: int
