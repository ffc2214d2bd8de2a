"""Board schemas."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from .common import SLUG_PATTERN


class BoardCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    slug: str = Field(..., min_length=1, max_length=63, pattern=SLUG_PATTERN)
    description: str | None = Field(None, max_length=1000)


class BoardResponse(BaseModel):
    id: int
    name: str
    slug: str
    description: str | None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class BoardPostCreate(BaseModel):
    title: str = Field(..., max_length=200)
    content: str = Field(..., max_length=10000)


class BoardPostResponse(BaseModel):
    id: int
    board_id: int
    author_id: int
    title: str
    content: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
