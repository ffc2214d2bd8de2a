"""Current-community endpoints for app clients."""

from __future__ import annotations

from fastapi import APIRouter, status

from commune_api.api.dependencies import AppContextDep, RequestCommunityDep, SessionDep
from commune_api.schemas.common import MessageResponse
from commune_api.schemas.community import CommunityResponse, LinkResponse
from commune_api.services import communities as community_service
from commune_api.services import membership as membership_service

router = APIRouter(prefix="/community", tags=["app-community"])


@router.get("", response_model=CommunityResponse)
async def get_current_community(community: RequestCommunityDep) -> CommunityResponse:
    return CommunityResponse.model_validate(community)


@router.get("/links", response_model=list[LinkResponse])
async def list_links(community: RequestCommunityDep, db: SessionDep) -> list[LinkResponse]:
    return [
        LinkResponse.model_validate(link)
        for link in community_service.list_links(db, community.id)
    ]


@router.post("/leave", response_model=MessageResponse, status_code=status.HTTP_200_OK)
async def leave(ctx: AppContextDep, db: SessionDep) -> MessageResponse:
    membership_service.leave_community(db, ctx.user_id, ctx.community_id)
    return MessageResponse(message="Left community")
