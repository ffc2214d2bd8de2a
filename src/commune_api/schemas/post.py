"""Post, edit history, bookmark and reaction schemas."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from .profile import ProfileSummary


class PostCreate(BaseModel):
    """Schema for creating a post or a reply."""

    content: str = Field("", max_length=5000, description="Post body")
    in_reply_to_id: int | None = Field(None, description="Parent post for replies")
    image_ids: list[int] = Field(default_factory=list, max_length=4)
    announcement: bool = False
    content_warning: str | None = Field(None, max_length=200)
    scheduled_at: datetime | None = Field(None, description="Publish later (staff only)")


class PostUpdate(BaseModel):
    """Schema for editing a post; ``image_ids`` replaces the current images."""

    content: str = Field("", max_length=5000)
    image_ids: list[int] = Field(default_factory=list, max_length=4)
    content_warning: str | None = Field(None, max_length=200)


class PostImageView(BaseModel):
    id: int
    url: str
    width: int
    height: int
    filename: str


class ReactionView(BaseModel):
    emoji: str
    profile: ProfileSummary


class PostView(BaseModel):
    id: int
    content: str
    announcement: bool
    content_warning: str | None
    in_reply_to_id: int | None
    root_post_id: int | None
    depth: int
    scheduled_at: datetime | None
    published_at: datetime | None
    pinned_at: datetime | None
    edited_at: datetime | None = None
    created_at: datetime
    author: ProfileSummary | None
    images: list[PostImageView] = []
    reactions: list[ReactionView] = []
    is_bookmarked: bool = False
    bookmarked_at: datetime | None = None


class PostThreadResponse(BaseModel):
    post: PostView
    parents: list[PostView]
    replies: list[PostView]


class ReactionCreate(BaseModel):
    emoji: str = Field(..., min_length=1, max_length=32)


class PostHistoryView(BaseModel):
    id: int
    content: str
    content_warning: str | None
    edited_at: datetime
    edited_by: ProfileSummary
    images: list[PostImageView] = []
