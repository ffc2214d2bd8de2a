"""Moderation endpoints for community staff."""

from __future__ import annotations

from fastapi import APIRouter, status

from commune_api.api.dependencies import AppContextDep, SessionDep
from commune_api.schemas.moderation import ModerationLogResponse, MuteRequest
from commune_api.services import moderation as moderation_service

router = APIRouter(prefix="/moderation", tags=["app-moderation"])


@router.post(
    "/profiles/{profile_id}/mute",
    response_model=ModerationLogResponse,
    status_code=status.HTTP_201_CREATED,
)
async def mute_profile(
    profile_id: int, ctx: AppContextDep, db: SessionDep, payload: MuteRequest | None = None
) -> ModerationLogResponse:
    entry = moderation_service.mute_profile(
        db, ctx.user_id, ctx.community_id, profile_id, payload.reason if payload else None
    )
    return ModerationLogResponse.model_validate(entry)


@router.post("/profiles/{profile_id}/unmute", response_model=ModerationLogResponse)
async def unmute_profile(
    profile_id: int, ctx: AppContextDep, db: SessionDep
) -> ModerationLogResponse:
    entry = moderation_service.unmute_profile(db, ctx.user_id, ctx.community_id, profile_id)
    return ModerationLogResponse.model_validate(entry)


@router.get("/logs", response_model=list[ModerationLogResponse])
async def list_moderation_logs(ctx: AppContextDep, db: SessionDep) -> list[ModerationLogResponse]:
    return [
        ModerationLogResponse.model_validate(entry)
        for entry in moderation_service.get_moderation_logs(db, ctx.user_id, ctx.community_id)
    ]
