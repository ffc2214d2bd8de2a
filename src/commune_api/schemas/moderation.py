"""Moderation schemas."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from commune_api.models import ModerationAction


class MuteRequest(BaseModel):
    reason: str | None = Field(None, max_length=500)


class ModerationLogResponse(BaseModel):
    id: int
    action: ModerationAction
    description: str
    moderator_id: int
    target_profile_id: int | None
    target_post_id: int | None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
