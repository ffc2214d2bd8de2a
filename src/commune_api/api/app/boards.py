"""Board endpoints for members."""

from __future__ import annotations

from fastapi import APIRouter, status

from commune_api.api.dependencies import ActingProfileDep, AppContextDep, SessionDep
from commune_api.schemas.board import BoardPostCreate, BoardPostResponse, BoardResponse
from commune_api.services import boards as board_service

router = APIRouter(prefix="/boards", tags=["app-boards"])


@router.get("", response_model=list[BoardResponse])
async def list_boards(ctx: AppContextDep, db: SessionDep) -> list[BoardResponse]:
    return [
        BoardResponse.model_validate(board)
        for board in board_service.list_boards(db, ctx.community_id)
    ]


@router.get("/{slug}/posts", response_model=list[BoardPostResponse])
async def list_board_posts(
    slug: str, ctx: AppContextDep, db: SessionDep
) -> list[BoardPostResponse]:
    board = board_service.get_board(db, ctx.community_id, slug)
    return [
        BoardPostResponse.model_validate(post)
        for post in board_service.list_board_posts(db, board)
    ]


@router.post(
    "/{slug}/posts", response_model=BoardPostResponse, status_code=status.HTTP_201_CREATED
)
async def create_board_post(
    slug: str,
    payload: BoardPostCreate,
    ctx: AppContextDep,
    profile: ActingProfileDep,
    db: SessionDep,
) -> BoardPostResponse:
    board = board_service.get_board(db, ctx.community_id, slug)
    post = board_service.create_board_post(db, board, profile, payload.title, payload.content)
    return BoardPostResponse.model_validate(post)


@router.delete("/{slug}/posts/{post_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_board_post(
    slug: str, post_id: int, ctx: AppContextDep, profile: ActingProfileDep, db: SessionDep
) -> None:
    board = board_service.get_board(db, ctx.community_id, slug)
    board_service.delete_board_post(db, ctx, board, post_id, profile)
