"""SQLAlchemy models for community boards."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from commune_api.db.session import Base, IdType
from commune_api.db.time import utcnow


class Board(Base):
    __tablename__ = "board"
    __table_args__ = (UniqueConstraint("community_id", "slug", name="uq_board_community_slug"),)

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    community_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("community.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    slug: Mapped[str] = mapped_column(String(63), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class BoardPost(Base):
    __tablename__ = "board_post"

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    board_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("board.id", ondelete="CASCADE"), nullable=False, index=True
    )
    author_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("profile.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(Text, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
