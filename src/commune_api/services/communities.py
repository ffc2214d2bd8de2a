"""Community services: lifecycle, discovery, links and dashboard statistics."""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from commune_api.core.errors import not_found, translate_integrity_error
from commune_api.db.time import as_utc, utcnow
from commune_api.models import (
    ApplicationStatus,
    Community,
    CommunityApplication,
    CommunityLink,
    DirectMessage,
    GroupChat,
    GroupChatMessage,
    Membership,
    MembershipRole,
    Post,
    Profile,
    User,
)
from commune_api.models.lifecycle import activate
from commune_api.services import membership as membership_service
from commune_api.services import profile_ownership
from commune_api.services.applications import get_application_statistics

logger = logging.getLogger(__name__)

_MUTABLE_FIELDS = (
    "name",
    "description",
    "starts_at",
    "ends_at",
    "is_recruiting",
    "recruiting_starts_at",
    "recruiting_ends_at",
    "minimum_birth_year",
    "custom_domain",
    "mute_new_members",
)


@dataclass
class UserCommunity:
    community: Community
    role: MembershipRole
    pending_application_count: int | None = None


def get_community(db: Session, community_id: int) -> Community:
    community = db.get(Community, community_id)
    if community is None or community.deleted_at is not None:
        raise not_found("Community not found")
    return community


def get_community_by_slug(db: Session, slug: str) -> Community | None:
    return db.scalar(
        select(Community).where(Community.slug == slug, Community.deleted_at.is_(None))
    )


def get_community_by_custom_domain(db: Session, domain: str) -> Community | None:
    """Only verified custom domains resolve to a community."""
    return db.scalar(
        select(Community).where(
            Community.custom_domain == domain,
            Community.domain_verified_at.is_not(None),
            Community.deleted_at.is_(None),
        )
    )


def create_community(
    db: Session,
    user: User,
    *,
    name: str,
    slug: str,
    starts_at: datetime,
    ends_at: datetime,
    profile_name: str,
    profile_username: str,
    description: str | None = None,
    is_recruiting: bool = False,
    recruiting_starts_at: datetime | None = None,
    recruiting_ends_at: datetime | None = None,
    minimum_birth_year: int | None = None,
) -> Community:
    """Create a community with its owner membership and primary profile."""
    community = Community(
        name=name,
        slug=slug,
        description=description,
        starts_at=starts_at,
        ends_at=ends_at,
        is_recruiting=is_recruiting,
        recruiting_starts_at=recruiting_starts_at,
        recruiting_ends_at=recruiting_ends_at,
        minimum_birth_year=minimum_birth_year,
    )
    try:
        with db.begin_nested():
            db.add(community)
            db.flush()
    except IntegrityError as exc:
        raise translate_integrity_error(exc) from exc

    membership_service.create_membership(db, user.id, community.id, MembershipRole.OWNER)
    profile = Profile(
        community_id=community.id,
        name=profile_name,
        username=profile_username,
        is_primary=True,
    )
    activate(profile)
    db.add(profile)
    db.flush()
    profile_ownership.create_profile_ownership(db, profile.id, user.id)
    db.commit()
    logger.info("Community %s (%s) created by user %s", community.id, community.slug, user.id)
    return community


def update_community(db: Session, community_id: int, changes: dict[str, Any]) -> Community:
    community = get_community(db, community_id)
    for key, value in changes.items():
        if key in _MUTABLE_FIELDS:
            setattr(community, key, value)
    if "custom_domain" in changes:
        # A new domain must be verified again before it resolves.
        community.domain_verified_at = None
    try:
        with db.begin_nested():
            db.flush()
    except IntegrityError as exc:
        raise translate_integrity_error(exc) from exc
    db.commit()
    return community


def delete_community(db: Session, community_id: int) -> Community:
    community = get_community(db, community_id)
    community.deleted_at = utcnow()
    db.commit()
    logger.info("Community %s soft deleted", community_id)
    return community


def get_recruiting_communities(db: Session, now: datetime | None = None) -> list[Community]:
    now = now or utcnow()
    candidates = db.scalars(
        select(Community)
        .where(Community.is_recruiting.is_(True), Community.deleted_at.is_(None))
        .order_by(Community.id.desc())
    ).all()
    return [
        community
        for community in candidates
        if community.is_accepting_applications(now) and not community.has_ended(now)
    ]


def get_user_communities(db: Session, user_id: int) -> list[UserCommunity]:
    """Communities the user is active in; staff also see pending application counts."""
    rows = db.execute(
        select(Community, Membership.role)
        .join(Membership, Membership.community_id == Community.id)
        .where(
            Membership.user_id == user_id,
            Membership.activated_at.is_not(None),
            Community.deleted_at.is_(None),
        )
        .order_by(Community.id)
    ).all()
    result: list[UserCommunity] = []
    for community, role in rows:
        entry = UserCommunity(community=community, role=role)
        if role in (MembershipRole.OWNER, MembershipRole.MODERATOR):
            entry.pending_application_count = int(
                db.scalar(
                    select(func.count(CommunityApplication.id)).where(
                        CommunityApplication.community_id == community.id,
                        CommunityApplication.status == ApplicationStatus.PENDING,
                    )
                )
                or 0
            )
        result.append(entry)
    return result


def get_community_stats(db: Session, community_id: int) -> dict[str, Any]:
    community = get_community(db, community_id)
    members = db.scalar(
        select(func.count(Membership.id)).where(
            Membership.community_id == community_id,
            Membership.activated_at.is_not(None),
        )
    )
    return {
        "community": {"id": community.id, "name": community.name, "slug": community.slug},
        "applications": get_application_statistics(db, community_id),
        "members": {"total": int(members or 0)},
    }


def _timeline(stamps: Sequence[datetime], since: datetime) -> tuple[list[dict], list[dict]]:
    daily: Counter[str] = Counter()
    hourly: Counter[str] = Counter()
    for stamp in stamps:
        stamp = as_utc(stamp)
        if stamp < since:
            continue
        daily[stamp.date().isoformat()] += 1
        hourly[stamp.replace(minute=0, second=0, microsecond=0).isoformat()] += 1
    return (
        [{"date": key, "count": daily[key]} for key in sorted(daily)],
        [{"datetime": key, "count": hourly[key]} for key in sorted(hourly)],
    )


def _heatmap(stamps: Sequence[datetime]) -> list[dict]:
    cells: Counter[tuple[int, int]] = Counter()
    for stamp in stamps:
        stamp = as_utc(stamp)
        # Sunday = 0, matching the usual day-of-week convention of SQL engines.
        cells[(stamp.hour, (stamp.weekday() + 1) % 7)] += 1
    return [
        {"hour": hour, "day_of_week": day, "count": count}
        for (hour, day), count in sorted(cells.items())
    ]


def get_community_activity_stats(db: Session, community_id: int, days: int = 30) -> dict[str, Any]:
    """Daily/hourly timelines over ``days`` plus all-time hour x weekday heatmaps."""
    get_community(db, community_id)
    since = utcnow() - timedelta(days=days)

    post_stamps = db.scalars(
        select(Post.created_at).where(
            Post.community_id == community_id, Post.deleted_at.is_(None)
        )
    ).all()
    dm_stamps = db.scalars(
        select(DirectMessage.created_at).where(
            DirectMessage.community_id == community_id, DirectMessage.deleted_at.is_(None)
        )
    ).all()
    group_stamps = db.scalars(
        select(GroupChatMessage.created_at)
        .join(GroupChat, GroupChat.id == GroupChatMessage.group_chat_id)
        .where(
            GroupChat.community_id == community_id,
            GroupChat.deleted_at.is_(None),
            GroupChatMessage.deleted_at.is_(None),
        )
    ).all()

    posts_daily, posts_hourly = _timeline(post_stamps, since)
    dms_daily, dms_hourly = _timeline(dm_stamps, since)
    groups_daily, groups_hourly = _timeline(group_stamps, since)
    return {
        "days": days,
        "posts": {"daily": posts_daily, "hourly": posts_hourly, "heatmap": _heatmap(post_stamps)},
        "direct_messages": {
            "daily": dms_daily,
            "hourly": dms_hourly,
            "heatmap": _heatmap(dm_stamps),
        },
        "group_messages": {"daily": groups_daily, "hourly": groups_hourly},
    }


def list_links(db: Session, community_id: int) -> Sequence[CommunityLink]:
    return db.scalars(
        select(CommunityLink)
        .where(CommunityLink.community_id == community_id)
        .order_by(CommunityLink.id)
    ).all()


def create_link(db: Session, community_id: int, title: str, url: str) -> CommunityLink:
    link = CommunityLink(community_id=community_id, title=title, url=url)
    db.add(link)
    db.commit()
    return link


def _get_link(db: Session, community_id: int, link_id: int) -> CommunityLink:
    link = db.get(CommunityLink, link_id)
    if link is None or link.community_id != community_id:
        raise not_found("Link not found")
    return link


def update_link(
    db: Session, community_id: int, link_id: int, title: str | None, url: str | None
) -> CommunityLink:
    link = _get_link(db, community_id, link_id)
    if title is not None:
        link.title = title
    if url is not None:
        link.url = url
    db.commit()
    return link


def delete_link(db: Session, community_id: int, link_id: int) -> None:
    db.delete(_get_link(db, community_id, link_id))
    db.commit()
