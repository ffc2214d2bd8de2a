"""Password hashing, session token signing and input sanitising helpers."""
from __future__ import annotations

import re

import bcrypt
from jose import JWTError, jwt

from commune_api.core.settings import settings

LOGIN_NAME_PATTERN = re.compile(r"^[a-zA-Z0-9_]{3,50}$")
MIN_PASSWORD_LENGTH = 8

_TAG_PATTERN = re.compile(r"<[^>]+>")


def hash_password(password: str) -> str:
    """Hash a password using bcrypt with cost factor 12."""
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=12)).decode()


def verify_password(password: str, hashed: str) -> bool:
    """Verify a password against a bcrypt hash."""
    try:
        return bcrypt.checkpw(password.encode(), hashed.encode())
    except ValueError:
        return False


def create_session_token(session_id: int, community_id: int | None) -> str:
    """Sign a token that identifies a persisted auth session."""
    claims = {"sid": session_id, "cid": community_id}
    return jwt.encode(claims, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_session_token(token: str) -> int | None:
    """Return the session id carried by ``token`` or None when it does not verify."""
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None
    session_id = payload.get("sid")
    if not isinstance(session_id, int):
        return None
    return session_id


def is_valid_login_name(login_name: str) -> bool:
    return bool(LOGIN_NAME_PATTERN.match(login_name))


def strip_html(text: str | None) -> str | None:
    """Remove markup from user-supplied free text."""
    if text is None:
        return None
    text = re.sub(r"<\s*br\s*/?>", "\n", text, flags=re.IGNORECASE)
    text = _TAG_PATTERN.sub("", text)
    return text.strip()
