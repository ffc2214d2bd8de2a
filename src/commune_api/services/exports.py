"""Per-user data export jobs for a community."""

from __future__ import annotations

import json
import logging
import uuid
from collections.abc import Sequence
from datetime import timedelta
from pathlib import Path
from typing import Any

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from commune_api.core.errors import conflict, forbidden, not_found
from commune_api.core.settings import settings
from commune_api.db.time import utcnow
from commune_api.models import CommunityExport, DirectMessage, ExportStatus, Post
from commune_api.models.membership import ANY_ROLE
from commune_api.services import membership as membership_service
from commune_api.services import profile_ownership

logger = logging.getLogger(__name__)

RECENT_EXPORTS_LIMIT = 10


def create_export_job(db: Session, community_id: int, user_id: int) -> CommunityExport:
    membership_service.validate_membership_role(db, user_id, community_id, ANY_ROLE)
    in_flight = db.scalar(
        select(CommunityExport.id).where(
            CommunityExport.community_id == community_id,
            CommunityExport.user_id == user_id,
            CommunityExport.status.in_([ExportStatus.PENDING, ExportStatus.PROCESSING]),
        )
    )
    if in_flight is not None:
        raise conflict("An export is already in progress")
    job = CommunityExport(community_id=community_id, user_id=user_id, status=ExportStatus.PENDING)
    db.add(job)
    db.commit()
    logger.info("Export %s queued for user %s in community %s", job.id, user_id, community_id)
    return job


def get_next_pending_job(db: Session) -> CommunityExport | None:
    return db.scalar(
        select(CommunityExport)
        .where(CommunityExport.status == ExportStatus.PENDING)
        .order_by(CommunityExport.created_at, CommunityExport.id)
        .limit(1)
    )


def _iso(value: Any) -> str | None:
    return value.isoformat() if value is not None else None


def build_export_archive(db: Session, community_id: int, user_id: int) -> dict[str, Any]:
    """Everything the user authored in the community through the profiles they own."""
    profiles = profile_ownership.get_owned_profiles(db, user_id, community_id)
    profile_ids = [profile.id for profile in profiles]

    posts: Sequence[Post] = []
    messages: Sequence[DirectMessage] = []
    if profile_ids:
        posts = db.scalars(
            select(Post)
            .where(
                Post.community_id == community_id,
                Post.author_id.in_(profile_ids),
                Post.deleted_at.is_(None),
            )
            .order_by(Post.id)
        ).all()
        messages = db.scalars(
            select(DirectMessage)
            .where(
                DirectMessage.community_id == community_id,
                DirectMessage.deleted_at.is_(None),
                or_(
                    DirectMessage.sender_id.in_(profile_ids),
                    DirectMessage.receiver_id.in_(profile_ids),
                ),
            )
            .order_by(DirectMessage.id)
        ).all()

    return {
        "community_id": community_id,
        "user_id": user_id,
        "exported_at": utcnow().isoformat(),
        "profiles": [
            {
                "id": profile.id,
                "name": profile.name,
                "username": profile.username,
                "bio": profile.bio,
                "is_primary": profile.is_primary,
                "created_at": _iso(profile.created_at),
            }
            for profile in profiles
        ],
        "posts": [
            {
                "id": post.id,
                "author_id": post.author_id,
                "content": post.content,
                "in_reply_to_id": post.in_reply_to_id,
                "announcement": post.announcement,
                "published_at": _iso(post.published_at),
                "created_at": _iso(post.created_at),
            }
            for post in posts
        ],
        "direct_messages": [
            {
                "id": message.id,
                "sender_id": message.sender_id,
                "receiver_id": message.receiver_id,
                "content": message.content,
                "created_at": _iso(message.created_at),
            }
            for message in messages
        ],
    }


def process_export_job(db: Session, job_id: int) -> CommunityExport:
    """Run one export to completion, recording failure on the job row."""
    job = db.get(CommunityExport, job_id)
    if job is None:
        raise not_found("Export job not found")
    if job.status is not ExportStatus.PENDING:
        return job

    job.status = ExportStatus.PROCESSING
    db.commit()
    try:
        archive = build_export_archive(db, job.community_id, job.user_id)
        export_dir = Path(settings.export_dir)
        export_dir.mkdir(parents=True, exist_ok=True)
        key = f"export-{job.community_id}-{job.user_id}-{uuid.uuid4().hex}.json"
        (export_dir / key).write_text(json.dumps(archive, indent=2), encoding="utf-8")
    except Exception as exc:
        logger.exception("Export %s failed", job_id)
        db.rollback()
        job = db.get(CommunityExport, job_id)
        job.status = ExportStatus.FAILED
        job.error_message = str(exc)
        db.commit()
        return job

    now = utcnow()
    job.status = ExportStatus.COMPLETED
    job.file_key = key
    job.completed_at = now
    job.expires_at = now + timedelta(days=settings.export_ttl_days)
    db.commit()
    logger.info("Export %s completed as %s", job.id, key)
    return job


def get_export_job_status(db: Session, job_id: int, user_id: int) -> CommunityExport:
    job = db.get(CommunityExport, job_id)
    if job is None or job.user_id != user_id:
        raise not_found("Export job not found")
    if membership_service.get_user_membership(db, user_id, job.community_id) is None:
        raise forbidden("You are no longer a member of this community")
    return job


def get_user_exports(db: Session, community_id: int, user_id: int) -> Sequence[CommunityExport]:
    return db.scalars(
        select(CommunityExport)
        .where(CommunityExport.community_id == community_id, CommunityExport.user_id == user_id)
        .order_by(CommunityExport.id.desc())
        .limit(RECENT_EXPORTS_LIMIT)
    ).all()


def export_file_path(job: CommunityExport) -> Path | None:
    if job.status is not ExportStatus.COMPLETED or job.file_key is None:
        return None
    return Path(settings.export_dir) / job.file_key
