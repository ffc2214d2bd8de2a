"""Tests for accounts, sessions and token handling."""

from datetime import timedelta

import pytest
from fastapi import status
from jose import jwt

from commune_api.core import security
from commune_api.core.errors import AppError, ErrorCode
from commune_api.core.settings import settings
from commune_api.db.time import utcnow
from commune_api.services import auth as auth_service


class TestSignup:
    def test_signup_hashes_password(self, db_session) -> None:
        user = auth_service.signup(db_session, "new_person", "long-enough-pw", "p@example.org")
        assert user.password_hash != "long-enough-pw"
        assert security.verify_password("long-enough-pw", user.password_hash)

    def test_duplicate_login_name(self, db_session, member) -> None:
        with pytest.raises(AppError) as excinfo:
            auth_service.signup(db_session, "member", "long-enough-pw")
        assert excinfo.value.status_code == status.HTTP_409_CONFLICT
        assert excinfo.value.code is ErrorCode.LOGIN_NAME_TAKEN

    @pytest.mark.parametrize(
        ("login_name", "password"),
        [("ab", "long-enough-pw"), ("has space", "long-enough-pw"), ("valid_name", "short")],
    )
    def test_invalid_credentials_shape(self, db_session, login_name, password) -> None:
        with pytest.raises(AppError) as excinfo:
            auth_service.signup(db_session, login_name, password)
        assert excinfo.value.status_code == status.HTTP_400_BAD_REQUEST


class TestLogin:
    def test_console_login(self, db_session, member, password) -> None:
        issued = auth_service.login(db_session, "member", password)
        assert issued.session.community_id is None
        session, user = auth_service.validate_session_and_get_user(db_session, issued.token)
        assert (session.id, user.id) == (issued.session.id, member.id)

    def test_wrong_password(self, db_session, member) -> None:
        with pytest.raises(AppError) as excinfo:
            auth_service.login(db_session, "member", "not-the-password")
        assert excinfo.value.status_code == status.HTTP_401_UNAUTHORIZED

    def test_app_login_requires_membership(
        self, db_session, community, outsider, password
    ) -> None:
        with pytest.raises(AppError) as excinfo:
            auth_service.login(db_session, "outsider", password, community.id)
        assert excinfo.value.status_code == status.HTTP_403_FORBIDDEN
        assert excinfo.value.code is ErrorCode.NOT_A_MEMBER

    def test_app_login_binds_community(
        self, db_session, community, member, member_profile, password
    ) -> None:
        issued = auth_service.login(db_session, "member", password, community.id)
        assert issued.session.community_id == community.id
        claims = jwt.decode(
            issued.token, settings.secret_key, algorithms=[settings.jwt_algorithm]
        )
        assert claims == {"sid": issued.session.id, "cid": community.id}


class TestSessions:
    def test_logout_invalidates_token(self, db_session, member) -> None:
        issued = auth_service.create_session(db_session, member)
        auth_service.logout(db_session, issued.session)
        with pytest.raises(AppError) as excinfo:
            auth_service.validate_session_and_get_user(db_session, issued.token)
        assert excinfo.value.status_code == status.HTTP_401_UNAUTHORIZED

    def test_expired_session(self, db_session, member) -> None:
        issued = auth_service.create_session(db_session, member)
        issued.session.expires_at = utcnow() - timedelta(minutes=1)
        db_session.commit()
        with pytest.raises(AppError) as excinfo:
            auth_service.validate_session_and_get_user(db_session, issued.token)
        assert excinfo.value.status_code == status.HTTP_401_UNAUTHORIZED

    def test_validation_slides_expiry(self, db_session, member) -> None:
        issued = auth_service.create_session(db_session, member)
        issued.session.expires_at = utcnow() + timedelta(hours=1)
        db_session.commit()
        session, _ = auth_service.validate_session_and_get_user(db_session, issued.token)
        assert session.expires_at > utcnow() + timedelta(days=settings.session_ttl_days - 1)

    def test_forged_token(self, db_session, member) -> None:
        forged = jwt.encode({"sid": 1, "cid": None}, "wrong-key", algorithm="HS256")
        with pytest.raises(AppError) as excinfo:
            auth_service.validate_session_and_get_user(db_session, forged)
        assert excinfo.value.status_code == status.HTTP_401_UNAUTHORIZED


def test_strip_html() -> None:
    assert security.strip_html("  <p>Hi<BR/>you</p> ") == "Hi\nyou"
    assert security.strip_html(None) is None
