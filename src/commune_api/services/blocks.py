"""User-level blocks, managed from the console."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session

from commune_api.core.errors import bad_request, conflict, not_found
from commune_api.models import User, UserBlock

logger = logging.getLogger(__name__)


def _find_block(db: Session, blocker_id: int, blocked_id: int) -> UserBlock | None:
    return db.scalar(
        select(UserBlock).where(
            UserBlock.blocker_id == blocker_id, UserBlock.blocked_id == blocked_id
        )
    )


def block_user(db: Session, blocker_id: int, blocked_id: int) -> UserBlock:
    if blocker_id == blocked_id:
        raise bad_request("You cannot block yourself")
    target = db.get(User, blocked_id)
    if target is None or target.deleted_at is not None:
        raise not_found("User not found")
    if _find_block(db, blocker_id, blocked_id) is not None:
        raise conflict("User already blocked")

    block = UserBlock(blocker_id=blocker_id, blocked_id=blocked_id)
    db.add(block)
    db.commit()
    logger.info("User %s blocked user %s", blocker_id, blocked_id)
    return block


def unblock_user(db: Session, blocker_id: int, blocked_id: int) -> None:
    block = _find_block(db, blocker_id, blocked_id)
    if block is None:
        raise not_found("User not blocked")
    db.delete(block)
    db.commit()


def get_blocked_users(db: Session, blocker_id: int) -> Sequence[tuple[UserBlock, User]]:
    """Blocks made by ``blocker_id`` with the blocked user, newest first."""
    return db.execute(
        select(UserBlock, User)
        .join(User, User.id == UserBlock.blocked_id)
        .where(UserBlock.blocker_id == blocker_id)
        .order_by(UserBlock.created_at.desc(), UserBlock.id.desc())
    ).all()
