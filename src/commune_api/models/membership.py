"""SQLAlchemy models for community memberships and roles."""

from __future__ import annotations

import enum
from collections.abc import Iterable
from datetime import datetime

from sqlalchemy import DateTime, Enum, ForeignKey, Index, UniqueConstraint, text
from sqlalchemy.orm import Mapped, mapped_column

from commune_api.db.session import Base, IdType
from commune_api.db.time import utcnow
from commune_api.models.lifecycle import LifecycleMixin


class MembershipRole(str, enum.Enum):
    """Closed set of roles a member can hold within a community."""

    OWNER = "owner"
    MODERATOR = "moderator"
    MEMBER = "member"


OWNER_ONLY: frozenset[MembershipRole] = frozenset({MembershipRole.OWNER})
STAFF: frozenset[MembershipRole] = frozenset({MembershipRole.OWNER, MembershipRole.MODERATOR})
ANY_ROLE: frozenset[MembershipRole] = frozenset(MembershipRole)


def role_allowed(role: MembershipRole, allowed: Iterable[MembershipRole]) -> bool:
    return role in frozenset(allowed)


def _enum_values(enum_cls: type[enum.Enum]) -> list[str]:
    return [member.value for member in enum_cls]


class Membership(LifecycleMixin, Base):
    """A user's standing within one community.

    Inactive rows are kept so that a later approval can reactivate them.
    """

    __tablename__ = "membership"
    __table_args__ = (
        UniqueConstraint("user_id", "community_id", name="uq_membership_user_community"),
        UniqueConstraint("application_id", name="uq_membership_application"),
        Index(
            "uq_membership_active_owner",
            "community_id",
            unique=True,
            postgresql_where=text("role = 'owner' AND activated_at IS NOT NULL"),
            sqlite_where=text("role = 'owner' AND activated_at IS NOT NULL"),
        ),
    )

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("user.id", ondelete="CASCADE"), nullable=False, index=True
    )
    community_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("community.id", ondelete="CASCADE"), nullable=False, index=True
    )
    role: Mapped[MembershipRole] = mapped_column(
        Enum(
            MembershipRole,
            native_enum=False,
            length=20,
            values_callable=_enum_values,
            name="membership_role",
        ),
        nullable=False,
        default=MembershipRole.MEMBER,
    )
    application_id: Mapped[int | None] = mapped_column(
        IdType,
        ForeignKey("community_application.id", ondelete="SET NULL"),
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
