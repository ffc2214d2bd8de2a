"""Users the signed-in console user has blocked."""

from __future__ import annotations

from fastapi import APIRouter, status

from commune_api.api.dependencies import ConsoleUserDep, SessionDep
from commune_api.models import User, UserBlock
from commune_api.schemas.block import BlockedUserView
from commune_api.services import blocks as block_service

router = APIRouter(prefix="/blocks", tags=["console-blocks"])


def _view(block: UserBlock, blocked: User) -> BlockedUserView:
    return BlockedUserView(
        id=blocked.id, login_name=blocked.login_name, blocked_at=block.created_at
    )


@router.get("", response_model=list[BlockedUserView])
async def list_blocked_users(user: ConsoleUserDep, db: SessionDep) -> list[BlockedUserView]:
    """Blocked users, most recently blocked first."""
    blocks = block_service.get_blocked_users(db, user.id)
    return [_view(block, blocked) for block, blocked in blocks]


@router.post("/{user_id}", response_model=BlockedUserView, status_code=status.HTTP_201_CREATED)
async def block_user(user_id: int, user: ConsoleUserDep, db: SessionDep) -> BlockedUserView:
    block = block_service.block_user(db, user.id, user_id)
    return _view(block, db.get(User, user_id))


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def unblock_user(user_id: int, user: ConsoleUserDep, db: SessionDep) -> None:
    block_service.unblock_user(db, user.id, user_id)
