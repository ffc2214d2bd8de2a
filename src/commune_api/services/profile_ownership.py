"""Queries and mutations over the profile ownership join table.

A profile has exactly one ``owner`` grant (its creator) and any number of
``admin`` grants handed out by that owner. Owners manage a profile; any
grant holder may act as it.
"""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy import and_, delete, select
from sqlalchemy.orm import Session

from commune_api.models import Profile, ProfileOwnership, ProfileRole

__all__ = [
    "get_profile_ownership",
    "can_manage_profile",
    "can_use_profile",
    "get_user_profiles",
    "get_owned_profiles",
    "get_profile_users",
    "add_user_to_profile",
    "remove_user_from_profile",
    "create_profile_ownership",
    "get_primary_profile_id_for_user_in_community",
    "revoke_shared_profile_access",
    "validate_and_get_profile",
]


def get_profile_ownership(db: Session, user_id: int, profile_id: int) -> ProfileOwnership | None:
    return db.scalar(
        select(ProfileOwnership).where(
            ProfileOwnership.user_id == user_id,
            ProfileOwnership.profile_id == profile_id,
        )
    )


def can_manage_profile(db: Session, user_id: int, profile_id: int) -> bool:
    """Only the owner grant may edit, delete, share or set a profile primary."""
    ownership = get_profile_ownership(db, user_id, profile_id)
    return ownership is not None and ownership.role is ProfileRole.OWNER


def can_use_profile(db: Session, user_id: int, profile_id: int) -> bool:
    """Any grant allows acting as the profile."""
    return get_profile_ownership(db, user_id, profile_id) is not None


def get_user_profiles(
    db: Session, user_id: int, community_id: int | None = None
) -> list[tuple[Profile, ProfileRole]]:
    """Return non-deleted profiles the user holds any grant on, with that grant's role."""
    stmt = (
        select(Profile, ProfileOwnership.role)
        .join(ProfileOwnership, ProfileOwnership.profile_id == Profile.id)
        .where(ProfileOwnership.user_id == user_id, Profile.deleted_at.is_(None))
        .order_by(Profile.id)
    )
    if community_id is not None:
        stmt = stmt.where(Profile.community_id == community_id)
    return [(profile, role) for profile, role in db.execute(stmt).all()]


def get_owned_profiles(db: Session, user_id: int, community_id: int) -> Sequence[Profile]:
    """Non-deleted profiles in ``community_id`` where the user holds the owner grant."""
    return db.scalars(
        select(Profile)
        .join(ProfileOwnership, ProfileOwnership.profile_id == Profile.id)
        .where(
            ProfileOwnership.user_id == user_id,
            ProfileOwnership.role == ProfileRole.OWNER,
            Profile.community_id == community_id,
            Profile.deleted_at.is_(None),
        )
        .order_by(Profile.id)
    ).all()


def get_profile_users(db: Session, profile_id: int) -> Sequence[ProfileOwnership]:
    return db.scalars(
        select(ProfileOwnership)
        .where(ProfileOwnership.profile_id == profile_id)
        .order_by(ProfileOwnership.id)
    ).all()


def add_user_to_profile(
    db: Session,
    profile_id: int,
    user_id: int,
    role: ProfileRole,
    added_by_id: int,
) -> ProfileOwnership:
    ownership = ProfileOwnership(
        profile_id=profile_id,
        user_id=user_id,
        role=role,
        created_by_id=added_by_id,
    )
    db.add(ownership)
    return ownership


def remove_user_from_profile(db: Session, profile_id: int, user_id: int) -> bool:
    result = db.execute(
        delete(ProfileOwnership).where(
            ProfileOwnership.profile_id == profile_id,
            ProfileOwnership.user_id == user_id,
        )
    )
    return bool(result.rowcount)


def create_profile_ownership(
    db: Session, profile_id: int, user_id: int, created_by_id: int | None = None
) -> ProfileOwnership:
    """Attach the owner grant to a freshly created profile."""
    return add_user_to_profile(
        db, profile_id, user_id, ProfileRole.OWNER, created_by_id or user_id
    )


def get_primary_profile_id_for_user_in_community(
    db: Session, user_id: int, community_id: int
) -> int | None:
    """Primary owned profile, falling back to the first one, else None."""
    profiles = [
        profile for profile in get_owned_profiles(db, user_id, community_id) if profile.is_active
    ]
    for profile in profiles:
        if profile.is_primary:
            return profile.id
    return profiles[0].id if profiles else None


def revoke_shared_profile_access(db: Session, user_id: int, community_id: int) -> int:
    """Delete the user's non-owner grants on live profiles of a community."""
    profile_ids = select(Profile.id).where(
        and_(Profile.community_id == community_id, Profile.deleted_at.is_(None))
    )
    result = db.execute(
        delete(ProfileOwnership)
        .where(
            ProfileOwnership.user_id == user_id,
            ProfileOwnership.role != ProfileRole.OWNER,
            ProfileOwnership.profile_id.in_(profile_ids),
        )
    )
    return int(result.rowcount or 0)


def validate_and_get_profile(
    db: Session,
    user_id: int,
    profile_id: int,
    community_id: int,
    require_active: bool = False,
) -> Profile | None:
    """Return the profile when the user may use it inside ``community_id``.

    Returns None rather than raising so callers answer with a plain 404 and
    nothing about other tenants' profiles leaks.
    """
    if not can_use_profile(db, user_id, profile_id):
        return None
    profile = db.scalar(
        select(Profile).where(
            Profile.id == profile_id,
            Profile.community_id == community_id,
            Profile.deleted_at.is_(None),
        )
    )
    if profile is None:
        return None
    if require_active and not profile.is_active:
        return None
    return profile
