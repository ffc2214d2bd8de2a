"""Account and session services for console and app logins."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from commune_api.core import security
from commune_api.core.errors import (
    ErrorCode,
    bad_request,
    conflict,
    forbidden,
    translate_integrity_error,
    unauthorized,
)
from commune_api.core.settings import settings
from commune_api.db.time import as_utc, utcnow
from commune_api.models import AuthSession, User
from commune_api.services import membership as membership_service

logger = logging.getLogger(__name__)


@dataclass
class IssuedSession:
    session: AuthSession
    token: str
    user: User


def signup(db: Session, login_name: str, password: str, email: str | None = None) -> User:
    if not security.is_valid_login_name(login_name):
        raise bad_request("Login name must be 3-50 letters, digits or underscores")
    if len(password) < security.MIN_PASSWORD_LENGTH:
        raise bad_request(
            f"Password must be at least {security.MIN_PASSWORD_LENGTH} characters long"
        )
    if db.scalar(select(User.id).where(User.login_name == login_name)) is not None:
        raise conflict("Login name already exists", ErrorCode.LOGIN_NAME_TAKEN)

    user = User(
        login_name=login_name,
        email=email,
        password_hash=security.hash_password(password),
    )
    try:
        with db.begin_nested():
            db.add(user)
            db.flush()
    except IntegrityError as exc:
        raise translate_integrity_error(exc) from exc
    db.commit()
    logger.info("User %s signed up", user.id)
    return user


def authenticate(db: Session, login_name: str, password: str) -> User:
    user = db.scalar(
        select(User).where(User.login_name == login_name, User.deleted_at.is_(None))
    )
    if user is None or not security.verify_password(password, user.password_hash):
        raise unauthorized("Invalid login name or password")
    return user


def create_session(db: Session, user: User, community_id: int | None = None) -> IssuedSession:
    session = AuthSession(
        user_id=user.id,
        community_id=community_id,
        expires_at=utcnow() + timedelta(days=settings.session_ttl_days),
    )
    db.add(session)
    db.flush()
    token = security.create_session_token(session.id, community_id)
    db.commit()
    return IssuedSession(session=session, token=token, user=user)


def login(
    db: Session, login_name: str, password: str, community_id: int | None = None
) -> IssuedSession:
    """Authenticate and open a session.

    Console sessions (``community_id`` None) span communities; app sessions
    are bound to one community and need an active membership there.
    """
    user = authenticate(db, login_name, password)
    if community_id is not None:
        if membership_service.get_user_membership(db, user.id, community_id) is None:
            raise forbidden("You are not a member of this community", ErrorCode.NOT_A_MEMBER)
    return create_session(db, user, community_id)


def logout(db: Session, session: AuthSession) -> None:
    db.delete(session)
    db.commit()


def validate_session_and_get_user(db: Session, token: str) -> tuple[AuthSession, User]:
    """Resolve a token to its live session and user, sliding the expiry."""
    session_id = security.decode_session_token(token)
    if session_id is None:
        raise unauthorized("Invalid session")
    session = db.get(AuthSession, session_id)
    now = utcnow()
    if session is None or as_utc(session.expires_at) <= now:
        raise unauthorized("Session expired")
    user = db.get(User, session.user_id)
    if user is None or user.deleted_at is not None:
        raise unauthorized("Session expired")

    session.expires_at = now + timedelta(days=settings.session_ttl_days)
    db.commit()
    return session, user
