# src/commune_api/services/membership.py
"""Membership services: roles, removal, ownership transfer and leaving."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from sqlalchemy import select
from sqlalchemy.orm import Session

from commune_api.core.errors import ErrorCode, bad_request, forbidden, not_found
from commune_api.models import Membership, MembershipRole, Profile, User
from commune_api.models.lifecycle import activate, deactivate
from commune_api.services import profile_ownership
from commune_api.services.authz import require_role

logger = logging.getLogger(__name__)


@dataclass
class MemberEntry:
    membership: Membership
    user: User
    profiles: list[Profile] = field(default_factory=list)


@dataclass
class RoleUpdateResult:
    membership: Membership
    transferred: bool = False


def get_user_membership(db: Session, user_id: int, community_id: int) -> Membership | None:
    """Return the user's active membership in the community, if any."""
    membership = get_any_membership(db, user_id, community_id)
    if membership is None or not membership.is_active:
        return None
    return membership


def get_any_membership(db: Session, user_id: int, community_id: int) -> Membership | None:
    """Return the membership row regardless of its lifecycle state."""
    return db.scalar(
        select(Membership).where(
            Membership.user_id == user_id,
            Membership.community_id == community_id,
        )
    )


def validate_membership_role(
    db: Session,
    user_id: int,
    community_id: int,
    allowed_roles: Iterable[MembershipRole],
) -> Membership:
    """Return the active membership or raise 403 (not a member / access denied)."""
    return require_role(get_user_membership(db, user_id, community_id), allowed_roles)


def is_user_community_owner(db: Session, user_id: int, community_id: int) -> bool:
    membership = get_user_membership(db, user_id, community_id)
    return membership is not None and membership.role is MembershipRole.OWNER


def create_membership(
    db: Session,
    user_id: int,
    community_id: int,
    role: MembershipRole = MembershipRole.MEMBER,
    application_id: int | None = None,
) -> Membership:
    """Insert an active membership. Profiles are created by the caller."""
    membership = Membership(
        user_id=user_id,
        community_id=community_id,
        role=role,
        application_id=application_id,
    )
    activate(membership)
    db.add(membership)
    db.flush()
    return membership


def activate_membership(
    db: Session,
    membership: Membership,
    role: MembershipRole = MembershipRole.MEMBER,
    application_id: int | None = None,
) -> Membership:
    """Reactivate an existing membership row with a fresh role."""
    membership.role = role
    membership.application_id = application_id
    if membership.is_active:
        # Re-stamp so the row reads as reactivated by this application.
        deactivate(membership)
    activate(membership)
    db.flush()
    return membership


def deactivate_membership(db: Session, membership: Membership) -> int:
    """Deactivate a membership and everything hanging off it in that community.

    Owned profiles are deactivated. Shared grants the user held on other
    profiles are revoked; profiles the user only had admin access to are left
    as they are. Returns the number of revoked grants.
    """
    deactivate(membership)
    for profile in profile_ownership.get_owned_profiles(
        db, membership.user_id, membership.community_id
    ):
        deactivate(profile)
    db.flush()
    revoked = profile_ownership.revoke_shared_profile_access(
        db, membership.user_id, membership.community_id
    )
    db.flush()
    return revoked


def _get_member(db: Session, community_id: int, membership_id: int) -> Membership:
    membership = db.scalar(
        select(Membership).where(
            Membership.id == membership_id,
            Membership.community_id == community_id,
        )
    )
    if membership is None or not membership.is_active:
        raise not_found("Member not found")
    return membership


def remove_member(
    db: Session, community_id: int, membership_id: int, requesting_user_id: int
) -> Membership:
    """Owner removes a member; the owner themselves cannot be removed."""
    validate_membership_role(db, requesting_user_id, community_id, [MembershipRole.OWNER])
    target = _get_member(db, community_id, membership_id)
    if target.role is MembershipRole.OWNER:
        raise bad_request("The community owner cannot be removed")

    revoked = deactivate_membership(db, target)
    db.commit()
    logger.info(
        "Removed membership %s from community %s (revoked %s shared grants)",
        membership_id,
        community_id,
        revoked,
    )
    return target


def transfer_ownership(
    db: Session, community_id: int, current_owner_id: int, new_owner_id: int
) -> Membership:
    """Demote the current owner to moderator and promote the new owner.

    The demotion is flushed first so the single-active-owner index never
    sees two owners. The caller commits.
    """
    current = validate_membership_role(db, current_owner_id, community_id, [MembershipRole.OWNER])
    target = get_user_membership(db, new_owner_id, community_id)
    if target is None:
        raise not_found("Member not found")
    if target.id == current.id:
        raise bad_request("You already own this community")

    current.role = MembershipRole.MODERATOR
    db.flush()
    target.role = MembershipRole.OWNER
    db.flush()
    logger.info(
        "Transferred ownership of community %s from user %s to user %s",
        community_id,
        current_owner_id,
        new_owner_id,
    )
    return target


def update_member_role(
    db: Session,
    community_id: int,
    membership_id: int,
    new_role: MembershipRole,
    requesting_user_id: int,
) -> RoleUpdateResult:
    """Change a member's role; promoting to owner transfers ownership."""
    validate_membership_role(db, requesting_user_id, community_id, [MembershipRole.OWNER])
    target = _get_member(db, community_id, membership_id)

    if new_role is MembershipRole.OWNER:
        if target.role is MembershipRole.OWNER:
            raise bad_request("This member is already the owner")
        transfer_ownership(db, community_id, requesting_user_id, target.user_id)
        db.commit()
        return RoleUpdateResult(membership=target, transferred=True)

    if target.role is MembershipRole.OWNER:
        raise bad_request(
            "The owner's role cannot be changed directly; transfer ownership instead",
            ErrorCode.VALIDATION,
        )

    previous = target.role
    target.role = new_role
    db.flush()
    if previous is MembershipRole.MODERATOR and new_role is MembershipRole.MEMBER:
        # Delegated profile access is reserved for staff.
        profile_ownership.revoke_shared_profile_access(db, target.user_id, community_id)
    db.commit()
    return RoleUpdateResult(membership=target)


def leave_community(db: Session, user_id: int, community_id: int) -> Membership:
    membership = get_user_membership(db, user_id, community_id)
    if membership is None:
        raise not_found("You are not a member of this community")
    if membership.role is MembershipRole.OWNER:
        raise forbidden("Transfer ownership before leaving the community")
    deactivate_membership(db, membership)
    db.commit()
    return membership


def get_community_members(db: Session, community_id: int) -> list[MemberEntry]:
    """Active members with the active profiles they own in the community."""
    rows = db.execute(
        select(Membership, User)
        .join(User, User.id == Membership.user_id)
        .where(
            Membership.community_id == community_id,
            Membership.activated_at.is_not(None),
            User.deleted_at.is_(None),
        )
        .order_by(Membership.id)
    ).all()
    entries: list[MemberEntry] = []
    for membership, user in rows:
        profiles = [
            profile
            for profile in profile_ownership.get_owned_profiles(db, user.id, community_id)
            if profile.is_active
        ]
        entries.append(MemberEntry(membership=membership, user=user, profiles=profiles))
    return entries
