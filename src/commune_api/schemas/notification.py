"""Notification schemas."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from commune_api.models import NotificationType


class NotificationResponse(BaseModel):
    id: int
    type: NotificationType
    profile_id: int | None
    post_id: int | None
    content: str
    read_at: datetime | None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
