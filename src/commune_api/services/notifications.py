"""Per-profile notifications for replies, mentions and reactions."""

from __future__ import annotations

import re
from collections.abc import Sequence

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from commune_api.core.errors import not_found
from commune_api.db.time import utcnow
from commune_api.models import Notification, NotificationType, Post, Profile

MENTION_PATTERN = re.compile(r"(?<![\w@])@([a-zA-Z0-9_]{1,50})")


def extract_mentions(content: str) -> list[str]:
    return list(dict.fromkeys(MENTION_PATTERN.findall(content)))


def notify(
    db: Session,
    *,
    community_id: int,
    recipient_id: int,
    actor_id: int,
    type_: NotificationType,
    post_id: int | None,
    content: str,
) -> Notification | None:
    """Queue a notification; acting on your own profile notifies nobody."""
    if recipient_id == actor_id:
        return None
    notification = Notification(
        community_id=community_id,
        recipient_id=recipient_id,
        profile_id=actor_id,
        type=type_,
        post_id=post_id,
        content=content[:200],
    )
    db.add(notification)
    return notification


def notify_mentions(db: Session, post: Post, author: Profile) -> int:
    usernames = extract_mentions(post.content)
    if not usernames:
        return 0
    mentioned = db.scalars(
        select(Profile).where(
            Profile.community_id == post.community_id,
            Profile.username.in_(usernames),
            Profile.deleted_at.is_(None),
            Profile.activated_at.is_not(None),
        )
    ).all()
    sent = 0
    for profile in mentioned:
        if notify(
            db,
            community_id=post.community_id,
            recipient_id=profile.id,
            actor_id=author.id,
            type_=NotificationType.MENTION,
            post_id=post.id,
            content=post.content,
        ):
            sent += 1
    return sent


def list_notifications(
    db: Session, profile_id: int, community_id: int, limit: int = 50
) -> Sequence[Notification]:
    return db.scalars(
        select(Notification)
        .where(Notification.recipient_id == profile_id, Notification.community_id == community_id)
        .order_by(Notification.id.desc())
        .limit(limit)
    ).all()


def unread_count(db: Session, profile_id: int, community_id: int) -> int:
    return int(
        db.scalar(
            select(func.count(Notification.id)).where(
                Notification.recipient_id == profile_id,
                Notification.community_id == community_id,
                Notification.read_at.is_(None),
            )
        )
        or 0
    )


def mark_read(
    db: Session, notification_id: int, profile_id: int, community_id: int
) -> Notification:
    notification = db.get(Notification, notification_id)
    if (
        notification is None
        or notification.recipient_id != profile_id
        or notification.community_id != community_id
    ):
        raise not_found("Notification not found")
    if notification.read_at is None:
        notification.read_at = utcnow()
    db.commit()
    return notification


def mark_all_read(db: Session, profile_id: int, community_id: int) -> int:
    result = db.execute(
        update(Notification)
        .where(
            Notification.recipient_id == profile_id,
            Notification.community_id == community_id,
            Notification.read_at.is_(None),
        )
        .values(read_at=utcnow())
    )
    db.commit()
    return int(result.rowcount or 0)
