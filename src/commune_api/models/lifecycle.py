"""Activation lifecycle shared by memberships and profiles.

Rows carry ``activated_at``/``deactivated_at`` (and optionally ``deleted_at``)
timestamps. The state is always read and written through this module so the
timestamps cannot drift into a combination that has no meaning.
"""

from __future__ import annotations

import enum
from datetime import datetime
from typing import Any

from sqlalchemy import DateTime
from sqlalchemy.orm import Mapped, mapped_column

from commune_api.db.time import utcnow


class Lifecycle(str, enum.Enum):
    PENDING = "pending"
    ACTIVE = "active"
    DEACTIVATED = "deactivated"
    DELETED = "deleted"


class LifecycleError(ValueError):
    """Raised for a transition the lifecycle does not allow."""


class LifecycleMixin:
    """Columns backing the activation lifecycle."""

    activated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    deactivated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    @property
    def lifecycle(self) -> Lifecycle:
        return lifecycle_of(self)

    @property
    def is_active(self) -> bool:
        return lifecycle_of(self) is Lifecycle.ACTIVE


def lifecycle_of(row: Any) -> Lifecycle:
    if getattr(row, "deleted_at", None) is not None:
        return Lifecycle.DELETED
    if row.activated_at is not None:
        return Lifecycle.ACTIVE
    if row.deactivated_at is not None:
        return Lifecycle.DEACTIVATED
    return Lifecycle.PENDING


def activate(row: Any, when: datetime | None = None) -> None:
    """PENDING/DEACTIVATED -> ACTIVE. Activating an active row is a no-op."""
    state = lifecycle_of(row)
    if state is Lifecycle.DELETED:
        raise LifecycleError("Deleted rows cannot be reactivated")
    if state is Lifecycle.ACTIVE:
        return
    row.activated_at = when or utcnow()
    row.deactivated_at = None


def deactivate(row: Any, when: datetime | None = None) -> None:
    """ACTIVE -> DEACTIVATED. Other states are left untouched."""
    if lifecycle_of(row) is not Lifecycle.ACTIVE:
        return
    row.activated_at = None
    row.deactivated_at = when or utcnow()


def soft_delete(row: Any, when: datetime | None = None) -> None:
    """Any live state -> DELETED (terminal)."""
    if lifecycle_of(row) is Lifecycle.DELETED:
        raise LifecycleError("Row is already deleted")
    now = when or utcnow()
    row.activated_at = None
    row.deactivated_at = now
    row.deleted_at = now
