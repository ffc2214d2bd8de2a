"""SQLAlchemy models for community profiles and their ownership grants."""

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from commune_api.db.session import Base, IdType
from commune_api.db.time import utcnow
from commune_api.models.lifecycle import LifecycleMixin

USERNAME_PATTERN = r"^[a-zA-Z0-9_]+$"
USERNAME_MAX_LENGTH = 50


class ProfileRole(str, enum.Enum):
    """Capability a user holds on a profile."""

    OWNER = "owner"
    ADMIN = "admin"


class Profile(LifecycleMixin, Base):
    """A display identity within a single community."""

    __tablename__ = "profile"
    __table_args__ = (
        Index(
            "uq_profile_community_username",
            "community_id",
            "username",
            unique=True,
            postgresql_where=text("deleted_at IS NULL"),
            sqlite_where=text("deleted_at IS NULL"),
        ),
    )

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    community_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("community.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    username: Mapped[str] = mapped_column(String(USERNAME_MAX_LENGTH), nullable=False)
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_primary: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    muted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    muted_by_id: Mapped[int | None] = mapped_column(
        IdType, ForeignKey("profile.id", ondelete="SET NULL"), nullable=True
    )
    last_active_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    @property
    def is_muted(self) -> bool:
        return self.muted_at is not None


class ProfileOwnership(Base):
    """Grant linking a user to a profile; exactly one owner row per profile."""

    __tablename__ = "profile_ownership"
    __table_args__ = (
        UniqueConstraint("profile_id", "user_id", name="uq_profile_ownership_profile_user"),
    )

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    profile_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("profile.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("user.id", ondelete="CASCADE"), nullable=False, index=True
    )
    role: Mapped[ProfileRole] = mapped_column(
        Enum(
            ProfileRole,
            native_enum=False,
            length=20,
            values_callable=lambda cls: [member.value for member in cls],
            name="profile_role",
        ),
        nullable=False,
        default=ProfileRole.OWNER,
    )
    created_by_id: Mapped[int | None] = mapped_column(
        IdType, ForeignKey("user.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
