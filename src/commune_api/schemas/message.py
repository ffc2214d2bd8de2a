"""Direct message and group chat schemas."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from .profile import ProfileSummary


class DirectMessageCreate(BaseModel):
    receiver_id: int
    content: str = Field(..., max_length=5000)


class DirectMessageResponse(BaseModel):
    id: int
    sender_id: int
    receiver_id: int
    content: str
    read_at: datetime | None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ConversationResponse(BaseModel):
    other_profile: ProfileSummary
    last_message: DirectMessageResponse
    unread_count: int

    model_config = ConfigDict(from_attributes=True)


class GroupChatCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    member_profile_ids: list[int] = Field(..., min_length=1, max_length=50)


class GroupChatResponse(BaseModel):
    id: int
    name: str
    created_by_id: int
    created_at: datetime
    members: list[ProfileSummary] = []


class GroupMessageCreate(BaseModel):
    content: str = Field(..., max_length=5000)


class GroupMessageResponse(BaseModel):
    id: int
    group_chat_id: int
    sender_id: int
    content: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
