"""SQLAlchemy models for direct and group messaging between profiles."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from commune_api.db.session import Base, IdType
from commune_api.db.time import utcnow


class DirectMessage(Base):
    """One-to-one message between two profiles of the same community."""

    __tablename__ = "direct_message"
    __table_args__ = (
        CheckConstraint("sender_id <> receiver_id", name="ck_direct_message_not_self"),
    )

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    community_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("community.id", ondelete="CASCADE"), nullable=False, index=True
    )
    sender_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("profile.id", ondelete="CASCADE"), nullable=False, index=True
    )
    receiver_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("profile.id", ondelete="CASCADE"), nullable=False, index=True
    )
    created_by_user_id: Mapped[int | None] = mapped_column(
        IdType, ForeignKey("user.id", ondelete="SET NULL"), nullable=True
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    read_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class GroupChat(Base):
    __tablename__ = "group_chat"

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    community_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("community.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    created_by_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("profile.id", ondelete="CASCADE"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class GroupChatMembership(Base):
    __tablename__ = "group_chat_membership"
    __table_args__ = (
        UniqueConstraint("group_chat_id", "profile_id", name="uq_group_chat_membership"),
    )

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    group_chat_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("group_chat.id", ondelete="CASCADE"), nullable=False, index=True
    )
    profile_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("profile.id", ondelete="CASCADE"), nullable=False, index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )


class GroupChatMessage(Base):
    __tablename__ = "group_chat_message"

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    group_chat_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("group_chat.id", ondelete="CASCADE"), nullable=False, index=True
    )
    sender_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("profile.id", ondelete="CASCADE"), nullable=False
    )
    created_by_user_id: Mapped[int | None] = mapped_column(
        IdType, ForeignKey("user.id", ondelete="SET NULL"), nullable=True
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
