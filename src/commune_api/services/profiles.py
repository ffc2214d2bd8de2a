"""Profile services: creation, edits, primary selection, deletion and sharing."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from commune_api.core.errors import (
    ErrorCode,
    bad_request,
    conflict,
    forbidden,
    not_found,
    translate_integrity_error,
)
from commune_api.models import Post, Profile, ProfileOwnership, ProfileRole, User
from commune_api.models.lifecycle import activate, soft_delete
from commune_api.services import membership as membership_service
from commune_api.services import profile_ownership

logger = logging.getLogger(__name__)


@dataclass
class SharedUser:
    ownership: ProfileOwnership
    user: User


def _username_taken(
    db: Session, username: str, community_id: int, exclude_profile_id: int | None = None
) -> bool:
    stmt = select(Profile.id).where(
        Profile.community_id == community_id,
        Profile.username == username,
        Profile.deleted_at.is_(None),
    )
    if exclude_profile_id is not None:
        stmt = stmt.where(Profile.id != exclude_profile_id)
    return db.scalar(stmt.limit(1)) is not None


def check_username_availability(db: Session, username: str, community_id: int) -> bool:
    return not _username_taken(db, username, community_id)


def list_profiles_for_user(
    db: Session, user_id: int, community_id: int
) -> list[tuple[Profile, ProfileRole]]:
    """Owned and shared profiles in the community, with the user's grant role."""
    return profile_ownership.get_user_profiles(db, user_id, community_id)


def _unset_primary(db: Session, user_id: int, community_id: int, keep_id: int | None) -> None:
    for profile in profile_ownership.get_owned_profiles(db, user_id, community_id):
        if profile.id != keep_id and profile.is_primary:
            profile.is_primary = False
    db.flush()


def create_profile(
    db: Session,
    user_id: int,
    community_id: int,
    name: str,
    username: str,
    bio: str | None = None,
    is_primary: bool = False,
) -> Profile:
    if _username_taken(db, username, community_id):
        raise bad_request("Username is already taken in this community", ErrorCode.USERNAME_TAKEN)

    if is_primary:
        _unset_primary(db, user_id, community_id, keep_id=None)

    profile = Profile(
        community_id=community_id,
        name=name,
        username=username,
        bio=bio,
        is_primary=is_primary,
    )
    activate(profile)
    try:
        with db.begin_nested():
            db.add(profile)
            db.flush()
    except IntegrityError as exc:
        raise translate_integrity_error(exc) from exc
    profile_ownership.create_profile_ownership(db, profile.id, user_id)
    db.commit()
    return profile


def get_manageable_profile(
    db: Session, user_id: int, profile_id: int, community_id: int
) -> Profile:
    """Return a live profile the user owns, otherwise 404."""
    if not profile_ownership.can_manage_profile(db, user_id, profile_id):
        raise not_found("Profile not found")
    profile = db.scalar(
        select(Profile).where(
            Profile.id == profile_id,
            Profile.community_id == community_id,
            Profile.deleted_at.is_(None),
        )
    )
    if profile is None:
        raise not_found("Profile not found")
    return profile


def update_profile(
    db: Session,
    user_id: int,
    profile_id: int,
    community_id: int,
    *,
    name: str | None = None,
    username: str | None = None,
    bio: str | None = None,
) -> Profile:
    profile = get_manageable_profile(db, user_id, profile_id, community_id)
    if username is not None and username != profile.username:
        if _username_taken(db, username, community_id, exclude_profile_id=profile.id):
            raise bad_request(
                "Username is already taken in this community", ErrorCode.USERNAME_TAKEN
            )
        profile.username = username
    if name is not None:
        profile.name = name
    if bio is not None:
        profile.bio = bio
    db.commit()
    return profile


def delete_profile(db: Session, user_id: int, profile_id: int, community_id: int) -> Profile:
    """Soft delete a profile; the primary or the last remaining profile stays."""
    profile = get_manageable_profile(db, user_id, profile_id, community_id)
    if profile.is_primary:
        raise bad_request("The primary profile cannot be deleted")
    owned = profile_ownership.get_owned_profiles(db, user_id, community_id)
    if len(owned) <= 1:
        raise bad_request("You must keep at least one profile in this community")
    soft_delete(profile)
    db.commit()
    return profile


def set_primary_profile(db: Session, user_id: int, profile_id: int, community_id: int) -> Profile:
    if not profile_ownership.can_manage_profile(db, user_id, profile_id):
        raise forbidden("Only the profile owner can set it as primary")
    profile = db.scalar(
        select(Profile).where(
            Profile.id == profile_id,
            Profile.community_id == community_id,
            Profile.deleted_at.is_(None),
        )
    )
    if profile is None or not profile.is_active:
        raise not_found("Profile not found")

    _unset_primary(db, user_id, community_id, keep_id=profile.id)
    profile.is_primary = True
    db.commit()
    return profile


def get_profile_by_username(db: Session, username: str, community_id: int) -> Profile:
    profile = db.scalar(
        select(Profile).where(
            Profile.username == username,
            Profile.community_id == community_id,
            Profile.deleted_at.is_(None),
            Profile.activated_at.is_not(None),
        )
    )
    if profile is None:
        raise not_found("Profile not found")
    return profile


def get_profile_posts(
    db: Session, username: str, community_id: int, limit: int = 50
) -> Sequence[Post]:
    """Published top-level posts by a profile, pinned first, then newest."""
    profile = get_profile_by_username(db, username, community_id)
    return db.scalars(
        select(Post)
        .where(
            Post.author_id == profile.id,
            Post.community_id == community_id,
            Post.deleted_at.is_(None),
            Post.published_at.is_not(None),
            Post.in_reply_to_id.is_(None),
        )
        .order_by(
            Post.pinned_at.is_(None),
            Post.pinned_at.desc(),
            Post.created_at.desc(),
            Post.id.desc(),
        )
        .limit(limit)
    ).all()


def get_profile_shared_users(
    db: Session, user_id: int, profile_id: int, community_id: int
) -> list[SharedUser]:
    if not profile_ownership.can_manage_profile(db, user_id, profile_id):
        raise forbidden("Only the profile owner can view who it is shared with")
    profile = db.get(Profile, profile_id)
    if profile is None or profile.community_id != community_id or profile.deleted_at is not None:
        raise not_found("Profile not found")
    rows = db.execute(
        select(ProfileOwnership, User)
        .join(User, User.id == ProfileOwnership.user_id)
        .where(ProfileOwnership.profile_id == profile_id)
        .order_by(ProfileOwnership.id)
    ).all()
    return [SharedUser(ownership=ownership, user=user) for ownership, user in rows]


def share_profile_with_user(
    db: Session,
    user_id: int,
    profile_id: int,
    community_id: int,
    target_username: str,
    role: ProfileRole = ProfileRole.ADMIN,
) -> ProfileOwnership:
    """Grant another member access to a profile.

    The target user is identified by one of their own profiles in the same
    community; they must be an active member there.
    """
    if not profile_ownership.can_manage_profile(db, user_id, profile_id):
        raise forbidden("Only the profile owner can share it")
    profile = db.scalar(
        select(Profile).where(
            Profile.id == profile_id,
            Profile.community_id == community_id,
            Profile.deleted_at.is_(None),
        )
    )
    if profile is None:
        raise not_found("Profile not found")
    if profile.is_primary:
        raise bad_request("Primary profiles cannot be shared")
    if role is ProfileRole.OWNER:
        raise bad_request("Shared access is granted with the admin role")

    target_profile = db.scalar(
        select(Profile).where(
            Profile.username == target_username,
            Profile.community_id == community_id,
            Profile.deleted_at.is_(None),
        )
    )
    if target_profile is None:
        raise not_found("Target profile not found")
    target_owner = db.scalar(
        select(ProfileOwnership).where(
            ProfileOwnership.profile_id == target_profile.id,
            ProfileOwnership.role == ProfileRole.OWNER,
        )
    )
    if target_owner is None:
        raise not_found("Target user not found")
    target_user_id = target_owner.user_id
    if membership_service.get_user_membership(db, target_user_id, community_id) is None:
        raise bad_request("Target user is not an active member of this community")

    if profile_ownership.get_profile_ownership(db, target_user_id, profile_id) is not None:
        raise conflict("Profile is already shared with this user", ErrorCode.ALREADY_SHARED)

    try:
        with db.begin_nested():
            grant = profile_ownership.add_user_to_profile(
                db, profile_id, target_user_id, role, user_id
            )
            db.flush()
    except IntegrityError as exc:
        raise translate_integrity_error(exc) from exc
    db.commit()
    logger.info("Profile %s shared with user %s by user %s", profile_id, target_user_id, user_id)
    return grant


def remove_user_from_profile_sharing(
    db: Session, user_id: int, profile_id: int, community_id: int, target_user_id: int
) -> None:
    if not profile_ownership.can_manage_profile(db, user_id, profile_id):
        raise forbidden("Only the profile owner can change who it is shared with")
    profile = db.get(Profile, profile_id)
    if profile is None or profile.community_id != community_id or profile.deleted_at is not None:
        raise not_found("Profile not found")
    grant = profile_ownership.get_profile_ownership(db, target_user_id, profile_id)
    if grant is None:
        raise not_found("Shared access not found")
    if grant.role is ProfileRole.OWNER:
        owners = [
            row
            for row in profile_ownership.get_profile_users(db, profile_id)
            if row.role is ProfileRole.OWNER
        ]
        if len(owners) <= 1:
            raise bad_request("The sole owner cannot be removed from a profile")
    profile_ownership.remove_user_from_profile(db, profile_id, target_user_id)
    db.commit()


def require_acting_profile(
    db: Session, user_id: int, profile_id: int, community_id: int
) -> Profile:
    """Profile the user is acting as for this request; 404 when not usable here."""
    profile = profile_ownership.validate_and_get_profile(
        db, user_id, profile_id, community_id, require_active=True
    )
    if profile is None:
        raise not_found("Profile not found")
    return profile
