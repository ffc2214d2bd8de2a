"""SQLAlchemy models for membership applications."""

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import DateTime, Enum, ForeignKey, Index, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from commune_api.db.session import Base, IdType
from commune_api.db.time import utcnow


class ApplicationStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class CommunityApplication(Base):
    """A user's request to join a community under a chosen profile name."""

    __tablename__ = "community_application"
    __table_args__ = (
        Index(
            "uq_application_pending_user_community",
            "user_id",
            "community_id",
            unique=True,
            postgresql_where=text("status = 'pending'"),
            sqlite_where=text("status = 'pending'"),
        ),
    )

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("user.id", ondelete="CASCADE"), nullable=False, index=True
    )
    community_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("community.id", ondelete="CASCADE"), nullable=False, index=True
    )
    profile_name: Mapped[str] = mapped_column(Text, nullable=False)
    profile_username: Mapped[str] = mapped_column(String(50), nullable=False)
    message: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[ApplicationStatus] = mapped_column(
        Enum(
            ApplicationStatus,
            native_enum=False,
            length=20,
            values_callable=lambda cls: [member.value for member in cls],
            name="application_status",
        ),
        nullable=False,
        default=ApplicationStatus.PENDING,
    )
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    reviewed_by_id: Mapped[int | None] = mapped_column(
        IdType, ForeignKey("user.id", ondelete="SET NULL"), nullable=True
    )
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    attachments: Mapped[list[ApplicationAttachment]] = relationship(
        "ApplicationAttachment",
        cascade="all, delete-orphan",
        order_by="ApplicationAttachment.id",
    )


class ApplicationAttachment(Base):
    """Image attached to an application."""

    __tablename__ = "application_attachment"

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    application_id: Mapped[int] = mapped_column(
        IdType,
        ForeignKey("community_application.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    image_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("image.id", ondelete="CASCADE"), nullable=False
    )
