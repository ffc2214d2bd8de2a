"""Shared Pydantic schemas for common API elements."""
from __future__ import annotations

from typing import Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")

SLUG_PATTERN = r"^[a-z0-9](?:[a-z0-9-]{0,61}[a-z0-9])?$"
USERNAME_PATTERN = r"^[a-zA-Z0-9_]+$"


class Page(BaseModel, Generic[T]):
    """Cursor-paginated list; pass ``next_cursor`` back as ``cursor``."""

    items: list[T]
    next_cursor: int | None = Field(None, description="Cursor for the next page, if any.")
    has_more: bool = False


class MessageResponse(BaseModel):
    message: str


class CountResponse(BaseModel):
    count: int
