"""Shared API dependencies for authentication, tenancy and authorization.

Two chains are built here:

* console: cookie session (not bound to a community) -> user, with the
  community taken from the ``{community_id}`` path parameter;
* app: bearer session bound to a community -> user, with the community
  resolved from the request's Origin/Host header.

Both end in an :class:`AuthContext` that routers hand to the services.
"""

from typing import Annotated

from fastapi import Depends, Header, Query, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from commune_api.core.errors import forbidden, not_found, unauthorized
from commune_api.core.settings import settings
from commune_api.db.session import get_db
from commune_api.models import AuthSession, Community, Profile, User
from commune_api.models.membership import ANY_ROLE, OWNER_ONLY, STAFF
from commune_api.services import auth as auth_service
from commune_api.services import communities as community_service
from commune_api.services import membership as membership_service
from commune_api.services import profile_ownership
from commune_api.services.authz import AuthContext, require_role
from commune_api.services.profiles import require_acting_profile
from commune_api.services.tenancy import (
    ensure_session_matches,
    extract_hostname,
    resolve_community,
)

# HTTP Bearer scheme for app sessions; missing credentials are reported as 401 below.
bearer_scheme = HTTPBearer(auto_error=False)

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


def get_console_session(request: Request, db: SessionDep) -> tuple[AuthSession, User]:
    """Resolve the console cookie to its session and user.

    Raises:
        AppError: 401 when the cookie is missing or invalid, 403 when the
            token belongs to a community-bound app session.
    """
    token = request.cookies.get(settings.session_cookie_name)
    if not token:
        raise unauthorized()
    session, user = auth_service.validate_session_and_get_user(db, token)
    if session.community_id is not None:
        raise forbidden("App sessions cannot be used with the console")
    return session, user


ConsoleSessionDep = Annotated[tuple[AuthSession, User], Depends(get_console_session)]


def get_console_user(console_session: ConsoleSessionDep) -> User:
    return console_session[1]


ConsoleUserDep = Annotated[User, Depends(get_console_user)]


def get_console_context(community_id: int, user: ConsoleUserDep, db: SessionDep) -> AuthContext:
    """Membership of the console user in the path's community."""
    community = community_service.get_community(db, community_id)
    membership = require_role(
        membership_service.get_user_membership(db, user.id, community.id), ANY_ROLE
    )
    return AuthContext(user=user, community=community, membership=membership)


ConsoleContextDep = Annotated[AuthContext, Depends(get_console_context)]


def owner_only(ctx: ConsoleContextDep) -> AuthContext:
    require_role(ctx.membership, OWNER_ONLY)
    return ctx


def moderator_or_owner(ctx: ConsoleContextDep) -> AuthContext:
    require_role(ctx.membership, STAFF)
    return ctx


ConsoleOwnerDep = Annotated[AuthContext, Depends(owner_only)]
ConsoleStaffDep = Annotated[AuthContext, Depends(moderator_or_owner)]


def get_request_community(
    db: SessionDep,
    origin: Annotated[str | None, Header()] = None,
    host: Annotated[str | None, Header()] = None,
) -> Community:
    """The community this request is addressed to, from Origin or Host."""
    return resolve_community(db, extract_hostname(origin, host))


RequestCommunityDep = Annotated[Community, Depends(get_request_community)]


def get_app_session(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    db: SessionDep,
) -> tuple[AuthSession, User]:
    if credentials is None or not credentials.credentials:
        raise unauthorized()
    session, user = auth_service.validate_session_and_get_user(db, credentials.credentials)
    if session.community_id is None:
        raise forbidden("Console sessions cannot be used with the app")
    return session, user


AppSessionDep = Annotated[tuple[AuthSession, User], Depends(get_app_session)]


def get_app_context(
    app_session: AppSessionDep, community: RequestCommunityDep, db: SessionDep
) -> AuthContext:
    """401 without a session, 404 for an unknown community, 403 for non-members."""
    session, user = app_session
    ensure_session_matches(session, community)
    membership = require_role(
        membership_service.get_user_membership(db, user.id, community.id), ANY_ROLE
    )
    return AuthContext(user=user, community=community, membership=membership, session=session)


AppContextDep = Annotated[AuthContext, Depends(get_app_context)]


def app_staff(ctx: AppContextDep) -> AuthContext:
    require_role(ctx.membership, STAFF)
    return ctx


AppStaffDep = Annotated[AuthContext, Depends(app_staff)]


def get_acting_profile(
    ctx: AppContextDep,
    db: SessionDep,
    profile_id: Annotated[int | None, Query(description="Profile to act as")] = None,
) -> Profile:
    """Profile the request acts as; defaults to the user's primary profile."""
    if profile_id is None:
        profile_id = profile_ownership.get_primary_profile_id_for_user_in_community(
            db, ctx.user_id, ctx.community_id
        )
        if profile_id is None:
            raise not_found("Profile not found")
    return require_acting_profile(db, ctx.user_id, profile_id, ctx.community_id)


ActingProfileDep = Annotated[Profile, Depends(get_acting_profile)]
