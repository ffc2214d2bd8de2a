"""Console member management: roles, removal, ownership transfer and leaving."""

from __future__ import annotations

from fastapi import APIRouter, status

from commune_api.api.dependencies import (
    ConsoleContextDep,
    ConsoleOwnerDep,
    ConsoleStaffDep,
    SessionDep,
)
from commune_api.schemas.common import MessageResponse
from commune_api.schemas.membership import (
    MemberResponse,
    MemberUser,
    OwnershipTransfer,
    RoleUpdate,
    RoleUpdateResponse,
)
from commune_api.schemas.profile import ProfileSummary
from commune_api.services import membership as membership_service

router = APIRouter(prefix="/communities/{community_id}", tags=["console-members"])


@router.get("/members", response_model=list[MemberResponse])
async def list_members(ctx: ConsoleStaffDep, db: SessionDep) -> list[MemberResponse]:
    return [
        MemberResponse(
            membership_id=entry.membership.id,
            role=entry.membership.role,
            activated_at=entry.membership.activated_at,
            user=MemberUser.model_validate(entry.user),
            profiles=[ProfileSummary.model_validate(profile) for profile in entry.profiles],
        )
        for entry in membership_service.get_community_members(db, ctx.community_id)
    ]


@router.patch("/members/{membership_id}", response_model=RoleUpdateResponse)
async def update_member_role(
    membership_id: int, payload: RoleUpdate, ctx: ConsoleOwnerDep, db: SessionDep
) -> RoleUpdateResponse:
    """Change a member's role; granting ``owner`` transfers ownership."""
    result = membership_service.update_member_role(
        db, ctx.community_id, membership_id, payload.role, ctx.user_id
    )
    return RoleUpdateResponse(
        membership_id=result.membership.id,
        role=result.membership.role,
        transferred=result.transferred,
    )


@router.delete("/members/{membership_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_member(membership_id: int, ctx: ConsoleOwnerDep, db: SessionDep) -> None:
    membership_service.remove_member(db, ctx.community_id, membership_id, ctx.user_id)


@router.post("/transfer-ownership", response_model=MessageResponse)
async def transfer_ownership(
    payload: OwnershipTransfer, ctx: ConsoleOwnerDep, db: SessionDep
) -> MessageResponse:
    membership_service.transfer_ownership(
        db, ctx.community_id, ctx.user_id, payload.new_owner_user_id
    )
    db.commit()
    return MessageResponse(message="Ownership transferred")


@router.post("/leave", response_model=MessageResponse)
async def leave_community(ctx: ConsoleContextDep, db: SessionDep) -> MessageResponse:
    membership_service.leave_community(db, ctx.user_id, ctx.community_id)
    return MessageResponse(message="Left community")
