"""Profile endpoints: the caller's own profiles and public profile pages."""

from __future__ import annotations

from fastapi import APIRouter, Query, status

from commune_api.api.dependencies import AppContextDep, SessionDep
from commune_api.models import Profile, ProfileRole, User
from commune_api.schemas.post import PostView
from commune_api.schemas.profile import (
    MyProfileResponse,
    ProfileCreate,
    ProfileResponse,
    ProfileUpdate,
    SharedUserResponse,
    ShareRequest,
    UsernameAvailability,
)
from commune_api.services import posts as post_service
from commune_api.services import profiles as profile_service

router = APIRouter(tags=["app-profiles"])


def _mine(profile: Profile, role: ProfileRole) -> MyProfileResponse:
    return MyProfileResponse.model_validate(
        {**ProfileResponse.model_validate(profile).model_dump(), "role": role}
    )


@router.get("/me/profiles", response_model=list[MyProfileResponse])
async def list_my_profiles(ctx: AppContextDep, db: SessionDep) -> list[MyProfileResponse]:
    """Owned and shared profiles the caller can act as in this community."""
    return [
        _mine(profile, role)
        for profile, role in profile_service.list_profiles_for_user(
            db, ctx.user_id, ctx.community_id
        )
    ]


@router.post(
    "/me/profiles", response_model=MyProfileResponse, status_code=status.HTTP_201_CREATED
)
async def create_profile(
    payload: ProfileCreate, ctx: AppContextDep, db: SessionDep
) -> MyProfileResponse:
    profile = profile_service.create_profile(
        db,
        ctx.user_id,
        ctx.community_id,
        name=payload.name,
        username=payload.username,
        bio=payload.bio,
        is_primary=payload.is_primary,
    )
    return _mine(profile, ProfileRole.OWNER)


@router.put("/me/profiles/{profile_id}", response_model=MyProfileResponse)
async def update_profile(
    profile_id: int, payload: ProfileUpdate, ctx: AppContextDep, db: SessionDep
) -> MyProfileResponse:
    profile = profile_service.update_profile(
        db,
        ctx.user_id,
        profile_id,
        ctx.community_id,
        name=payload.name,
        username=payload.username,
        bio=payload.bio,
    )
    return _mine(profile, ProfileRole.OWNER)


@router.delete("/me/profiles/{profile_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_profile(profile_id: int, ctx: AppContextDep, db: SessionDep) -> None:
    profile_service.delete_profile(db, ctx.user_id, profile_id, ctx.community_id)


@router.post("/me/profiles/{profile_id}/primary", response_model=MyProfileResponse)
async def set_primary_profile(
    profile_id: int, ctx: AppContextDep, db: SessionDep
) -> MyProfileResponse:
    profile = profile_service.set_primary_profile(db, ctx.user_id, profile_id, ctx.community_id)
    return _mine(profile, ProfileRole.OWNER)


@router.get("/me/profiles/{profile_id}/users", response_model=list[SharedUserResponse])
async def list_profile_users(
    profile_id: int, ctx: AppContextDep, db: SessionDep
) -> list[SharedUserResponse]:
    return [
        SharedUserResponse(
            user_id=entry.user.id,
            login_name=entry.user.login_name,
            role=entry.ownership.role,
            created_at=entry.ownership.created_at,
        )
        for entry in profile_service.get_profile_shared_users(
            db, ctx.user_id, profile_id, ctx.community_id
        )
    ]


@router.post(
    "/me/profiles/{profile_id}/users",
    response_model=SharedUserResponse,
    status_code=status.HTTP_201_CREATED,
)
async def share_profile(
    profile_id: int, payload: ShareRequest, ctx: AppContextDep, db: SessionDep
) -> SharedUserResponse:
    grant = profile_service.share_profile_with_user(
        db, ctx.user_id, profile_id, ctx.community_id, payload.username, payload.role
    )
    user = db.get(User, grant.user_id)
    return SharedUserResponse(
        user_id=grant.user_id,
        login_name=user.login_name,
        role=grant.role,
        created_at=grant.created_at,
    )


@router.delete(
    "/me/profiles/{profile_id}/users/{user_id}", status_code=status.HTTP_204_NO_CONTENT
)
async def unshare_profile(
    profile_id: int, user_id: int, ctx: AppContextDep, db: SessionDep
) -> None:
    profile_service.remove_user_from_profile_sharing(
        db, ctx.user_id, profile_id, ctx.community_id, user_id
    )


@router.get("/profiles/check-username", response_model=UsernameAvailability)
async def check_username(
    ctx: AppContextDep,
    db: SessionDep,
    username: str = Query(..., min_length=1, max_length=50),
) -> UsernameAvailability:
    return UsernameAvailability(
        username=username,
        available=profile_service.check_username_availability(db, username, ctx.community_id),
    )


@router.get("/profiles/{username}", response_model=ProfileResponse)
async def get_profile(username: str, ctx: AppContextDep, db: SessionDep) -> ProfileResponse:
    return ProfileResponse.model_validate(
        profile_service.get_profile_by_username(db, username, ctx.community_id)
    )


@router.get("/profiles/{username}/posts", response_model=list[PostView])
async def get_profile_posts(username: str, ctx: AppContextDep, db: SessionDep) -> list[PostView]:
    posts = profile_service.get_profile_posts(db, username, ctx.community_id)
    return [PostView.model_validate(view) for view in post_service.serialize_posts(db, posts)]
