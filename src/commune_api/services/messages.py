"""Direct messages and group chats between profiles of one community."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from sqlalchemy import and_, or_, select, update
from sqlalchemy.orm import Session

from commune_api.core.errors import bad_request, forbidden, not_found
from commune_api.core.settings import settings
from commune_api.db.time import utcnow
from commune_api.models import (
    DirectMessage,
    GroupChat,
    GroupChatMembership,
    GroupChatMessage,
    Profile,
)
from commune_api.services.posts import Page, paginate

logger = logging.getLogger(__name__)


@dataclass
class Conversation:
    other_profile: Profile
    last_message: DirectMessage
    unread_count: int


def _get_active_profile(db: Session, profile_id: int, community_id: int) -> Profile:
    profile = db.scalar(
        select(Profile).where(
            Profile.id == profile_id,
            Profile.community_id == community_id,
            Profile.deleted_at.is_(None),
            Profile.activated_at.is_not(None),
        )
    )
    if profile is None:
        raise not_found("Profile not found")
    return profile


def send_direct_message(
    db: Session,
    sender: Profile,
    receiver_id: int,
    content: str,
    created_by_user_id: int | None = None,
) -> DirectMessage:
    if not content.strip():
        raise bad_request("Message content cannot be empty")
    if receiver_id == sender.id:
        raise bad_request("You cannot message yourself")
    if sender.is_muted:
        raise forbidden("This profile is muted and cannot send messages")
    receiver = _get_active_profile(db, receiver_id, sender.community_id)

    message = DirectMessage(
        community_id=sender.community_id,
        sender_id=sender.id,
        receiver_id=receiver.id,
        created_by_user_id=created_by_user_id,
        content=content,
    )
    db.add(message)
    sender.last_active_at = utcnow()
    db.commit()
    return message


def _conversation_filter(profile_id: int, other_id: int):
    return or_(
        and_(DirectMessage.sender_id == profile_id, DirectMessage.receiver_id == other_id),
        and_(DirectMessage.sender_id == other_id, DirectMessage.receiver_id == profile_id),
    )


def list_conversations(db: Session, profile: Profile) -> list[Conversation]:
    """One entry per counterpart, most recent conversation first."""
    messages = db.scalars(
        select(DirectMessage)
        .where(
            DirectMessage.community_id == profile.community_id,
            DirectMessage.deleted_at.is_(None),
            or_(DirectMessage.sender_id == profile.id, DirectMessage.receiver_id == profile.id),
        )
        .order_by(DirectMessage.id.desc())
    ).all()

    latest: dict[int, DirectMessage] = {}
    unread: dict[int, int] = {}
    for message in messages:
        other_id = message.receiver_id if message.sender_id == profile.id else message.sender_id
        latest.setdefault(other_id, message)
        if message.receiver_id == profile.id and message.read_at is None:
            unread[other_id] = unread.get(other_id, 0) + 1
    if not latest:
        return []

    others = {
        other.id: other
        for other in db.scalars(select(Profile).where(Profile.id.in_(latest.keys()))).all()
    }
    return [
        Conversation(
            other_profile=others[other_id],
            last_message=message,
            unread_count=unread.get(other_id, 0),
        )
        for other_id, message in latest.items()
        if other_id in others
    ]


def get_conversation(
    db: Session,
    profile: Profile,
    other_profile_id: int,
    cursor: int | None = None,
    limit: int | None = None,
) -> Page:
    """Messages with one counterpart, newest first, paginated by message id."""
    limit = limit or settings.page_size
    other = db.get(Profile, other_profile_id)
    if other is None or other.community_id != profile.community_id:
        raise not_found("Profile not found")
    stmt = select(DirectMessage).where(
        DirectMessage.community_id == profile.community_id,
        DirectMessage.deleted_at.is_(None),
        _conversation_filter(profile.id, other.id),
    )
    if cursor is not None:
        stmt = stmt.where(DirectMessage.id < cursor)
    rows = db.scalars(stmt.order_by(DirectMessage.id.desc()).limit(limit + 1)).all()
    return paginate(rows, limit, key=lambda message: message.id)


def mark_conversation_read(db: Session, profile: Profile, other_profile_id: int) -> int:
    result = db.execute(
        update(DirectMessage)
        .where(
            DirectMessage.community_id == profile.community_id,
            DirectMessage.sender_id == other_profile_id,
            DirectMessage.receiver_id == profile.id,
            DirectMessage.read_at.is_(None),
        )
        .values(read_at=utcnow())
    )
    db.commit()
    return int(result.rowcount or 0)


def create_group_chat(
    db: Session, creator: Profile, name: str, member_profile_ids: Sequence[int]
) -> GroupChat:
    name = name.strip()
    if not name:
        raise bad_request("Group chat name cannot be empty")
    member_ids = [pid for pid in dict.fromkeys(member_profile_ids) if pid != creator.id]
    if not member_ids:
        raise bad_request("A group chat needs at least one other member")
    for profile_id in member_ids:
        _get_active_profile(db, profile_id, creator.community_id)

    chat = GroupChat(community_id=creator.community_id, name=name, created_by_id=creator.id)
    db.add(chat)
    db.flush()
    for profile_id in [creator.id, *member_ids]:
        db.add(GroupChatMembership(group_chat_id=chat.id, profile_id=profile_id))
    db.commit()
    logger.info("Group chat %s created by profile %s", chat.id, creator.id)
    return chat


def list_group_chats(db: Session, profile: Profile) -> Sequence[GroupChat]:
    return db.scalars(
        select(GroupChat)
        .join(GroupChatMembership, GroupChatMembership.group_chat_id == GroupChat.id)
        .where(
            GroupChatMembership.profile_id == profile.id,
            GroupChat.community_id == profile.community_id,
            GroupChat.deleted_at.is_(None),
        )
        .order_by(GroupChat.id.desc())
    ).all()


def get_group_chat_members(db: Session, chat_id: int) -> Sequence[Profile]:
    return db.scalars(
        select(Profile)
        .join(GroupChatMembership, GroupChatMembership.profile_id == Profile.id)
        .where(GroupChatMembership.group_chat_id == chat_id)
        .order_by(GroupChatMembership.id)
    ).all()


def _get_participating_chat(db: Session, profile: Profile, chat_id: int) -> GroupChat:
    chat = db.scalar(
        select(GroupChat)
        .join(GroupChatMembership, GroupChatMembership.group_chat_id == GroupChat.id)
        .where(
            GroupChat.id == chat_id,
            GroupChat.community_id == profile.community_id,
            GroupChat.deleted_at.is_(None),
            GroupChatMembership.profile_id == profile.id,
        )
    )
    if chat is None:
        raise not_found("Group chat not found")
    return chat


def send_group_message(
    db: Session,
    sender: Profile,
    chat_id: int,
    content: str,
    created_by_user_id: int | None = None,
) -> GroupChatMessage:
    chat = _get_participating_chat(db, sender, chat_id)
    if not content.strip():
        raise bad_request("Message content cannot be empty")
    if sender.is_muted:
        raise forbidden("This profile is muted and cannot send messages")
    message = GroupChatMessage(
        group_chat_id=chat.id,
        sender_id=sender.id,
        created_by_user_id=created_by_user_id,
        content=content,
    )
    db.add(message)
    sender.last_active_at = utcnow()
    db.commit()
    return message


def list_group_messages(
    db: Session,
    profile: Profile,
    chat_id: int,
    cursor: int | None = None,
    limit: int | None = None,
) -> Page:
    limit = limit or settings.page_size
    chat = _get_participating_chat(db, profile, chat_id)
    stmt = select(GroupChatMessage).where(
        GroupChatMessage.group_chat_id == chat.id,
        GroupChatMessage.deleted_at.is_(None),
    )
    if cursor is not None:
        stmt = stmt.where(GroupChatMessage.id < cursor)
    rows = db.scalars(stmt.order_by(GroupChatMessage.id.desc()).limit(limit + 1)).all()
    return paginate(rows, limit, key=lambda message: message.id)
