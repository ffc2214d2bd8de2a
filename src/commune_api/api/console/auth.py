"""Console accounts and cookie sessions."""

from __future__ import annotations

from fastapi import APIRouter, Response, status

from commune_api.api.dependencies import ConsoleSessionDep, ConsoleUserDep, SessionDep
from commune_api.core.settings import settings
from commune_api.schemas.auth import LoginRequest, SessionResponse, SignupRequest, UserResponse
from commune_api.services import auth as auth_service

router = APIRouter(prefix="/auth", tags=["console-auth"])


def _set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        max_age=settings.session_ttl_days * 24 * 60 * 60,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
    )


@router.post("/signup", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def signup(payload: SignupRequest, db: SessionDep) -> UserResponse:
    user = auth_service.signup(db, payload.login_name, payload.password, payload.email)
    return UserResponse.model_validate(user)


@router.post("/login", response_model=SessionResponse)
async def login(payload: LoginRequest, response: Response, db: SessionDep) -> SessionResponse:
    issued = auth_service.login(db, payload.login_name, payload.password)
    _set_session_cookie(response, issued.token)
    return SessionResponse(
        token=issued.token,
        expires_at=issued.session.expires_at,
        community_id=None,
        user=UserResponse.model_validate(issued.user),
    )


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(console_session: ConsoleSessionDep, response: Response, db: SessionDep) -> None:
    auth_service.logout(db, console_session[0])
    response.delete_cookie(settings.session_cookie_name)


@router.get("/me", response_model=UserResponse)
async def me(user: ConsoleUserDep) -> UserResponse:
    return UserResponse.model_validate(user)
