"""App sign-in: sessions bound to the community the request is addressed to."""

from __future__ import annotations

from fastapi import APIRouter, status

from commune_api.api.dependencies import (
    AppContextDep,
    AppSessionDep,
    RequestCommunityDep,
    SessionDep,
)
from commune_api.schemas.auth import LoginRequest, SessionResponse, UserResponse
from commune_api.services import auth as auth_service

router = APIRouter(prefix="/auth", tags=["app-auth"])


@router.post("/login", response_model=SessionResponse)
async def login(
    payload: LoginRequest, community: RequestCommunityDep, db: SessionDep
) -> SessionResponse:
    """Log in to the current community; the token goes in the Authorization header."""
    issued = auth_service.login(db, payload.login_name, payload.password, community.id)
    return SessionResponse(
        token=issued.token,
        expires_at=issued.session.expires_at,
        community_id=issued.session.community_id,
        user=UserResponse.model_validate(issued.user),
    )


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(app_session: AppSessionDep, db: SessionDep) -> None:
    auth_service.logout(db, app_session[0])


@router.get("/me", response_model=UserResponse)
async def me(ctx: AppContextDep) -> UserResponse:
    return UserResponse.model_validate(ctx.user)
