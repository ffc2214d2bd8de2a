"""SQLAlchemy model for per-profile notifications."""

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import DateTime, Enum, ForeignKey, Text
from sqlalchemy.orm import Mapped, mapped_column

from commune_api.db.session import Base, IdType
from commune_api.db.time import utcnow


class NotificationType(str, enum.Enum):
    REPLY = "reply"
    MENTION = "mention"
    REACTION = "reaction"


class Notification(Base):
    __tablename__ = "notification"

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    community_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("community.id", ondelete="CASCADE"), nullable=False, index=True
    )
    recipient_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("profile.id", ondelete="CASCADE"), nullable=False, index=True
    )
    # Profile that triggered the notification.
    profile_id: Mapped[int | None] = mapped_column(
        IdType, ForeignKey("profile.id", ondelete="SET NULL"), nullable=True
    )
    type: Mapped[NotificationType] = mapped_column(
        Enum(
            NotificationType,
            native_enum=False,
            length=20,
            values_callable=lambda cls: [member.value for member in cls],
            name="notification_type",
        ),
        nullable=False,
    )
    post_id: Mapped[int | None] = mapped_column(
        IdType, ForeignKey("post.id", ondelete="CASCADE"), nullable=True
    )
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    read_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
