"""Moderation: muting profiles and the audit log staff actions leave behind."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session

from commune_api.core.errors import bad_request, conflict, not_found
from commune_api.db.time import utcnow
from commune_api.models import ModerationAction, ModerationLog, Profile
from commune_api.models.membership import STAFF
from commune_api.services import membership as membership_service
from commune_api.services import profile_ownership

logger = logging.getLogger(__name__)


def validate_moderator_permissions(db: Session, user_id: int, community_id: int) -> Profile:
    """Check the user is staff and return the profile moderation is attributed to.

    Raises:
        AppError: 403 when the user is not an active member or not staff,
            404 when they have no active profile of their own in the community.
    """
    membership_service.validate_membership_role(db, user_id, community_id, STAFF)
    primary_id = profile_ownership.get_primary_profile_id_for_user_in_community(
        db, user_id, community_id
    )
    owned = [
        profile
        for profile in profile_ownership.get_owned_profiles(db, user_id, community_id)
        if profile.is_active
    ]
    for profile in owned:
        if profile.id == primary_id:
            return profile
    if owned:
        return owned[0]
    raise not_found("No active profile found for this moderator")


def _get_target_profile(db: Session, profile_id: int, community_id: int) -> Profile:
    profile = db.get(Profile, profile_id)
    if profile is None or profile.community_id != community_id or not profile.is_active:
        raise not_found("Profile not found")
    return profile


def _is_own_profile(db: Session, user_id: int, profile_id: int) -> bool:
    return profile_ownership.get_profile_ownership(db, user_id, profile_id) is not None


def mute_profile(
    db: Session,
    user_id: int,
    community_id: int,
    target_profile_id: int,
    reason: str | None = None,
) -> ModerationLog:
    moderator = validate_moderator_permissions(db, user_id, community_id)
    target = _get_target_profile(db, target_profile_id, community_id)
    if _is_own_profile(db, user_id, target.id):
        raise bad_request("You cannot mute your own profile")
    if target.muted_at is not None:
        raise conflict("Profile is already muted")

    target.muted_at = utcnow()
    target.muted_by_id = moderator.id
    entry = ModerationLog(
        community_id=community_id,
        action=ModerationAction.MUTE_PROFILE,
        description=(reason or "").strip() or f"muted @{target.username}",
        moderator_id=moderator.id,
        target_profile_id=target.id,
    )
    db.add(entry)
    db.commit()
    logger.info(
        "Profile %s muted in community %s by profile %s", target.id, community_id, moderator.id
    )
    return entry


def unmute_profile(
    db: Session, user_id: int, community_id: int, target_profile_id: int
) -> ModerationLog:
    moderator = validate_moderator_permissions(db, user_id, community_id)
    target = _get_target_profile(db, target_profile_id, community_id)
    if _is_own_profile(db, user_id, target.id):
        raise bad_request("You cannot unmute your own profile")
    if target.muted_at is None:
        raise conflict("Profile is not muted")

    target.muted_at = None
    target.muted_by_id = None
    entry = ModerationLog(
        community_id=community_id,
        action=ModerationAction.UNMUTE_PROFILE,
        description=f"unmuted @{target.username}",
        moderator_id=moderator.id,
        target_profile_id=target.id,
    )
    db.add(entry)
    db.commit()
    logger.info(
        "Profile %s unmuted in community %s by profile %s", target.id, community_id, moderator.id
    )
    return entry


def get_moderation_logs(
    db: Session, user_id: int, community_id: int, limit: int = 100
) -> Sequence[ModerationLog]:
    membership_service.validate_membership_role(db, user_id, community_id, STAFF)
    return db.scalars(
        select(ModerationLog)
        .where(ModerationLog.community_id == community_id)
        .order_by(ModerationLog.id.desc())
        .limit(limit)
    ).all()
