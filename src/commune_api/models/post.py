# src/commune_api/models/post.py
"""SQLAlchemy models for posts, their images, edit history, bookmarks and reactions."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from commune_api.db.session import Base, IdType
from commune_api.db.time import utcnow


class Post(Base):
    """A post authored by a profile. Replies point at their parent and thread root."""

    __tablename__ = "post"

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    community_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("community.id", ondelete="CASCADE"), nullable=False, index=True
    )
    author_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("profile.id", ondelete="CASCADE"), nullable=False, index=True
    )
    created_by_user_id: Mapped[int | None] = mapped_column(
        IdType, ForeignKey("user.id", ondelete="SET NULL"), nullable=True
    )
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    announcement: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    content_warning: Mapped[str | None] = mapped_column(Text, nullable=True)
    in_reply_to_id: Mapped[int | None] = mapped_column(
        IdType, ForeignKey("post.id", ondelete="SET NULL"), nullable=True, index=True
    )
    depth: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    root_post_id: Mapped[int | None] = mapped_column(
        IdType, ForeignKey("post.id", ondelete="SET NULL"), nullable=True, index=True
    )
    scheduled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    published_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    pinned_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    edited_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class PostImage(Base):
    __tablename__ = "post_image"

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    post_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("post.id", ondelete="CASCADE"), nullable=False, index=True
    )
    image_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("image.id", ondelete="CASCADE"), nullable=False
    )


class PostHistory(Base):
    """The content a post had before one edit."""

    __tablename__ = "post_history"

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    post_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("post.id", ondelete="CASCADE"), nullable=False, index=True
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    content_warning: Mapped[str | None] = mapped_column(Text, nullable=True)
    edited_by_profile_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("profile.id", ondelete="CASCADE"), nullable=False
    )
    edited_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )


class PostHistoryImage(Base):
    __tablename__ = "post_history_image"
    __table_args__ = (
        UniqueConstraint(
            "post_history_id", "image_id", name="uq_post_history_image_history_image"
        ),
    )

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    post_history_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("post_history.id", ondelete="CASCADE"), nullable=False, index=True
    )
    image_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("image.id", ondelete="CASCADE"), nullable=False
    )


class PostBookmark(Base):
    __tablename__ = "post_bookmark"
    __table_args__ = (
        UniqueConstraint("profile_id", "post_id", name="uq_post_bookmark_profile_post"),
    )

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    profile_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("profile.id", ondelete="CASCADE"), nullable=False, index=True
    )
    post_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("post.id", ondelete="CASCADE"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )


class PostReaction(Base):
    __tablename__ = "post_reaction"
    __table_args__ = (
        UniqueConstraint(
            "profile_id", "post_id", "emoji", name="uq_post_reaction_profile_post_emoji"
        ),
    )

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    profile_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("profile.id", ondelete="CASCADE"), nullable=False
    )
    post_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("post.id", ondelete="CASCADE"), nullable=False, index=True
    )
    emoji: Mapped[str] = mapped_column(String(32), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
