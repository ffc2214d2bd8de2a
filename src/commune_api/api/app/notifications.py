"""Notification endpoints for the acting profile."""

from __future__ import annotations

from fastapi import APIRouter

from commune_api.api.dependencies import ActingProfileDep, AppContextDep, SessionDep
from commune_api.schemas.common import CountResponse
from commune_api.schemas.notification import NotificationResponse
from commune_api.services import notifications as notification_service

router = APIRouter(prefix="/notifications", tags=["app-notifications"])


@router.get("", response_model=list[NotificationResponse])
async def list_notifications(
    ctx: AppContextDep, profile: ActingProfileDep, db: SessionDep
) -> list[NotificationResponse]:
    return [
        NotificationResponse.model_validate(notification)
        for notification in notification_service.list_notifications(
            db, profile.id, ctx.community_id
        )
    ]


@router.get("/unread-count", response_model=CountResponse)
async def unread_count(
    ctx: AppContextDep, profile: ActingProfileDep, db: SessionDep
) -> CountResponse:
    return CountResponse(
        count=notification_service.unread_count(db, profile.id, ctx.community_id)
    )


@router.post("/read-all", response_model=CountResponse)
async def mark_all_read(
    ctx: AppContextDep, profile: ActingProfileDep, db: SessionDep
) -> CountResponse:
    return CountResponse(
        count=notification_service.mark_all_read(db, profile.id, ctx.community_id)
    )


@router.post("/{notification_id}/read", response_model=NotificationResponse)
async def mark_read(
    notification_id: int, ctx: AppContextDep, profile: ActingProfileDep, db: SessionDep
) -> NotificationResponse:
    notification = notification_service.mark_read(
        db, notification_id, profile.id, ctx.community_id
    )
    return NotificationResponse.model_validate(notification)
