"""SQLAlchemy models for communities (tenants) and their links."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from commune_api.db.session import Base, IdType
from commune_api.db.time import as_utc, utcnow


class Community(Base):
    """A tenant: an isolated namespace for members, profiles and content."""

    __tablename__ = "community"
    __table_args__ = (
        UniqueConstraint("slug", name="uq_community_slug"),
        UniqueConstraint("custom_domain", name="uq_community_custom_domain"),
        CheckConstraint("ends_at > starts_at", name="ck_community_period"),
    )

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    slug: Mapped[str] = mapped_column(String(63), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    starts_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    ends_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    is_recruiting: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    recruiting_starts_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    recruiting_ends_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    minimum_birth_year: Mapped[int | None] = mapped_column(Integer, nullable=True)
    custom_domain: Mapped[str | None] = mapped_column(Text, nullable=True)
    domain_verified_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    mute_new_members: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    def has_started(self, now: datetime) -> bool:
        return as_utc(self.starts_at) <= now  # type: ignore[operator]

    def has_ended(self, now: datetime) -> bool:
        return as_utc(self.ends_at) < now  # type: ignore[operator]

    def is_accepting_applications(self, now: datetime) -> bool:
        if not self.is_recruiting:
            return False
        starts = as_utc(self.recruiting_starts_at)
        ends = as_utc(self.recruiting_ends_at)
        if starts is not None and now < starts:
            return False
        if ends is not None and now > ends:
            return False
        return True


class CommunityLink(Base):
    """External link shown on a community's landing page."""

    __tablename__ = "community_link"

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    community_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("community.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(Text, nullable=False)
    url: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
