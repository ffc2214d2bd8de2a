"""Direct message and group chat endpoints."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Query, status
from sqlalchemy.orm import Session

from commune_api.api.dependencies import ActingProfileDep, AppContextDep, SessionDep
from commune_api.models import GroupChat
from commune_api.schemas.common import CountResponse, Page
from commune_api.schemas.message import (
    ConversationResponse,
    DirectMessageCreate,
    DirectMessageResponse,
    GroupChatCreate,
    GroupChatResponse,
    GroupMessageCreate,
    GroupMessageResponse,
)
from commune_api.schemas.profile import ProfileSummary
from commune_api.services import messages as message_service

router = APIRouter(tags=["app-messages"])

CursorQuery = Annotated[int | None, Query(description="Id of the last message already seen")]
LimitQuery = Annotated[int | None, Query(ge=1, le=100)]


def _chat(db: Session, chat: GroupChat) -> GroupChatResponse:
    return GroupChatResponse(
        id=chat.id,
        name=chat.name,
        created_by_id=chat.created_by_id,
        created_at=chat.created_at,
        members=[
            ProfileSummary.model_validate(member)
            for member in message_service.get_group_chat_members(db, chat.id)
        ],
    )


@router.get("/messages", response_model=list[ConversationResponse])
async def list_conversations(
    profile: ActingProfileDep, db: SessionDep
) -> list[ConversationResponse]:
    return [
        ConversationResponse.model_validate(conversation)
        for conversation in message_service.list_conversations(db, profile)
    ]


@router.post(
    "/messages", response_model=DirectMessageResponse, status_code=status.HTTP_201_CREATED
)
async def send_direct_message(
    payload: DirectMessageCreate, ctx: AppContextDep, profile: ActingProfileDep, db: SessionDep
) -> DirectMessageResponse:
    message = message_service.send_direct_message(
        db, profile, payload.receiver_id, payload.content, ctx.user_id
    )
    return DirectMessageResponse.model_validate(message)


@router.get("/messages/{other_profile_id}", response_model=Page[DirectMessageResponse])
async def get_conversation(
    other_profile_id: int,
    profile: ActingProfileDep,
    db: SessionDep,
    cursor: CursorQuery = None,
    limit: LimitQuery = None,
) -> Page[DirectMessageResponse]:
    page = message_service.get_conversation(db, profile, other_profile_id, cursor, limit)
    return Page[DirectMessageResponse](
        items=[DirectMessageResponse.model_validate(item) for item in page.items],
        next_cursor=page.next_cursor,
        has_more=page.has_more,
    )


@router.post("/messages/{other_profile_id}/read", response_model=CountResponse)
async def mark_conversation_read(
    other_profile_id: int, profile: ActingProfileDep, db: SessionDep
) -> CountResponse:
    return CountResponse(
        count=message_service.mark_conversation_read(db, profile, other_profile_id)
    )


@router.get("/group-chats", response_model=list[GroupChatResponse])
async def list_group_chats(profile: ActingProfileDep, db: SessionDep) -> list[GroupChatResponse]:
    return [_chat(db, chat) for chat in message_service.list_group_chats(db, profile)]


@router.post(
    "/group-chats", response_model=GroupChatResponse, status_code=status.HTTP_201_CREATED
)
async def create_group_chat(
    payload: GroupChatCreate, profile: ActingProfileDep, db: SessionDep
) -> GroupChatResponse:
    chat = message_service.create_group_chat(
        db, profile, payload.name, payload.member_profile_ids
    )
    return _chat(db, chat)


@router.get("/group-chats/{chat_id}/messages", response_model=Page[GroupMessageResponse])
async def list_group_messages(
    chat_id: int,
    profile: ActingProfileDep,
    db: SessionDep,
    cursor: CursorQuery = None,
    limit: LimitQuery = None,
) -> Page[GroupMessageResponse]:
    page = message_service.list_group_messages(db, profile, chat_id, cursor, limit)
    return Page[GroupMessageResponse](
        items=[GroupMessageResponse.model_validate(item) for item in page.items],
        next_cursor=page.next_cursor,
        has_more=page.has_more,
    )


@router.post(
    "/group-chats/{chat_id}/messages",
    response_model=GroupMessageResponse,
    status_code=status.HTTP_201_CREATED,
)
async def send_group_message(
    chat_id: int,
    payload: GroupMessageCreate,
    ctx: AppContextDep,
    profile: ActingProfileDep,
    db: SessionDep,
) -> GroupMessageResponse:
    message = message_service.send_group_message(
        db, profile, chat_id, payload.content, ctx.user_id
    )
    return GroupMessageResponse.model_validate(message)
