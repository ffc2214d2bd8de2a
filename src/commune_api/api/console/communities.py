"""Console community management: creation, settings, links and statistics."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Query, status

from commune_api.api.dependencies import (
    ConsoleContextDep,
    ConsoleOwnerDep,
    ConsoleStaffDep,
    ConsoleUserDep,
    SessionDep,
)
from commune_api.schemas.board import BoardCreate, BoardResponse
from commune_api.schemas.community import (
    CommunityCreate,
    CommunityResponse,
    CommunityUpdate,
    LinkCreate,
    LinkResponse,
    LinkUpdate,
    UserCommunityResponse,
)
from commune_api.services import boards as board_service
from commune_api.services import communities as community_service

router = APIRouter(prefix="/communities", tags=["console-communities"])


@router.get("", response_model=list[UserCommunityResponse])
async def list_my_communities(user: ConsoleUserDep, db: SessionDep) -> list[UserCommunityResponse]:
    """Communities the caller belongs to, with their role in each."""
    return [
        UserCommunityResponse.model_validate(entry)
        for entry in community_service.get_user_communities(db, user.id)
    ]


@router.post("", response_model=CommunityResponse, status_code=status.HTTP_201_CREATED)
async def create_community(
    payload: CommunityCreate, user: ConsoleUserDep, db: SessionDep
) -> CommunityResponse:
    community = community_service.create_community(db, user, **payload.model_dump())
    return CommunityResponse.model_validate(community)


@router.get("/recruiting", response_model=list[CommunityResponse])
async def list_recruiting(_user: ConsoleUserDep, db: SessionDep) -> list[CommunityResponse]:
    return [
        CommunityResponse.model_validate(community)
        for community in community_service.get_recruiting_communities(db)
    ]


@router.get("/{community_id}", response_model=CommunityResponse)
async def get_community(ctx: ConsoleContextDep) -> CommunityResponse:
    return CommunityResponse.model_validate(ctx.community)


@router.put("/{community_id}", response_model=CommunityResponse)
async def update_community(
    payload: CommunityUpdate, ctx: ConsoleOwnerDep, db: SessionDep
) -> CommunityResponse:
    community = community_service.update_community(
        db, ctx.community_id, payload.model_dump(exclude_unset=True)
    )
    return CommunityResponse.model_validate(community)


@router.delete("/{community_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_community(ctx: ConsoleOwnerDep, db: SessionDep) -> None:
    community_service.delete_community(db, ctx.community_id)


@router.get("/{community_id}/stats")
async def get_stats(ctx: ConsoleStaffDep, db: SessionDep) -> dict[str, Any]:
    return community_service.get_community_stats(db, ctx.community_id)


@router.get("/{community_id}/activity")
async def get_activity(
    ctx: ConsoleStaffDep,
    db: SessionDep,
    days: int = Query(30, ge=1, le=365),
) -> dict[str, Any]:
    return community_service.get_community_activity_stats(db, ctx.community_id, days)


@router.get("/{community_id}/links", response_model=list[LinkResponse])
async def list_links(ctx: ConsoleContextDep, db: SessionDep) -> list[LinkResponse]:
    return [
        LinkResponse.model_validate(link)
        for link in community_service.list_links(db, ctx.community_id)
    ]


@router.post(
    "/{community_id}/links", response_model=LinkResponse, status_code=status.HTTP_201_CREATED
)
async def create_link(payload: LinkCreate, ctx: ConsoleOwnerDep, db: SessionDep) -> LinkResponse:
    link = community_service.create_link(db, ctx.community_id, payload.title, str(payload.url))
    return LinkResponse.model_validate(link)


@router.put("/{community_id}/links/{link_id}", response_model=LinkResponse)
async def update_link(
    link_id: int, payload: LinkUpdate, ctx: ConsoleOwnerDep, db: SessionDep
) -> LinkResponse:
    link = community_service.update_link(
        db,
        ctx.community_id,
        link_id,
        payload.title,
        str(payload.url) if payload.url is not None else None,
    )
    return LinkResponse.model_validate(link)


@router.delete("/{community_id}/links/{link_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_link(link_id: int, ctx: ConsoleOwnerDep, db: SessionDep) -> None:
    community_service.delete_link(db, ctx.community_id, link_id)


@router.post(
    "/{community_id}/boards", response_model=BoardResponse, status_code=status.HTTP_201_CREATED
)
async def create_board(payload: BoardCreate, ctx: ConsoleOwnerDep, db: SessionDep) -> BoardResponse:
    board = board_service.create_board(
        db, ctx.community_id, payload.name, payload.slug, payload.description
    )
    return BoardResponse.model_validate(board)
