"""SQLAlchemy model for the append-only moderation audit log."""

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import DateTime, Enum, ForeignKey, Text
from sqlalchemy.orm import Mapped, mapped_column

from commune_api.db.session import Base, IdType
from commune_api.db.time import utcnow


class ModerationAction(str, enum.Enum):
    DELETE_POST = "delete_post"
    MUTE_PROFILE = "mute_profile"
    UNMUTE_PROFILE = "unmute_profile"


class ModerationLog(Base):
    """Audit row attributed to the moderator's profile. Never updated."""

    __tablename__ = "moderation_log"

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    community_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("community.id", ondelete="CASCADE"), nullable=False, index=True
    )
    action: Mapped[ModerationAction] = mapped_column(
        Enum(
            ModerationAction,
            native_enum=False,
            length=32,
            values_callable=lambda cls: [member.value for member in cls],
            name="moderation_action",
        ),
        nullable=False,
    )
    description: Mapped[str] = mapped_column(Text, nullable=False)
    moderator_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("profile.id", ondelete="CASCADE"), nullable=False
    )
    target_profile_id: Mapped[int | None] = mapped_column(
        IdType, ForeignKey("profile.id", ondelete="SET NULL"), nullable=True
    )
    target_post_id: Mapped[int | None] = mapped_column(
        IdType, ForeignKey("post.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
