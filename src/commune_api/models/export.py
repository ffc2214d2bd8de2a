"""SQLAlchemy model for queued community data exports."""

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import DateTime, Enum, ForeignKey, Text
from sqlalchemy.orm import Mapped, mapped_column

from commune_api.db.session import Base, IdType
from commune_api.db.time import utcnow


class ExportStatus(str, enum.Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class CommunityExport(Base):
    __tablename__ = "community_export"

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    community_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("community.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("user.id", ondelete="CASCADE"), nullable=False, index=True
    )
    status: Mapped[ExportStatus] = mapped_column(
        Enum(
            ExportStatus,
            native_enum=False,
            length=20,
            values_callable=lambda cls: [member.value for member in cls],
            name="export_status",
        ),
        nullable=False,
        default=ExportStatus.PENDING,
    )
    file_key: Mapped[str | None] = mapped_column(Text, nullable=True)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
