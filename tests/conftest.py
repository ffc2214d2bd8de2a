# tests/conftest.py
from __future__ import annotations

import os
import tempfile
from collections.abc import Callable, Generator, Iterator
from datetime import timedelta
from itertools import count

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SCHEDULER_ENABLED", "false")
os.environ.setdefault("BASE_DOMAIN", "commune.local")
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="commune-uploads-"))
os.environ.setdefault("EXPORT_DIR", tempfile.mkdtemp(prefix="commune-exports-"))

from commune_api.core.security import hash_password
from commune_api.core.settings import settings
from commune_api.db.session import Base
from commune_api.db.session import get_db as app_get_session
from commune_api.db.time import utcnow
from commune_api.main import app as fastapi_app
from commune_api.models import Community, MembershipRole, Profile, User
from commune_api.models.lifecycle import activate
from commune_api.services import auth as auth_service
from commune_api.services import communities as community_service
from commune_api.services import membership as membership_service
from commune_api.services import profile_ownership
from commune_api.services.authz import AuthContext

TEST_DB_URL = "sqlite://"
TEST_PASSWORD = "correct-horse-battery"

# Hashing once keeps the factories fast; bcrypt is deliberately slow.
_PASSWORD_HASH = hash_password(TEST_PASSWORD)
_USER_COUNTER = count(1)
_COMMUNITY_COUNTER = count(1)
_PROFILE_COUNTER = count(1)


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    """Session joined to an outer transaction; service commits release savepoints."""
    connection = engine.connect()
    transaction = connection.begin()
    TestingSessionLocal = sessionmaker(
        bind=connection,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
        join_transaction_mode="create_savepoint",
    )
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        if transaction.is_active:
            transaction.rollback()
        connection.close()

        # SQLite may have committed released savepoints; start every test clean.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_session_dependency(app: FastAPI, db_session: Session) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


# Factories -----------------------------------------------------------------


@pytest.fixture()
def make_user(db_session: Session) -> Callable[..., User]:
    """Return a factory creating persisted users sharing ``TEST_PASSWORD``."""

    def _make_user(login_name: str | None = None) -> User:
        user = User(
            login_name=login_name or f"user{next(_USER_COUNTER)}",
            password_hash=_PASSWORD_HASH,
        )
        db_session.add(user)
        db_session.commit()
        return user

    return _make_user


@pytest.fixture()
def make_community(db_session: Session) -> Callable[..., Community]:
    """Return a factory creating a running, recruiting community with its owner."""

    def _make_community(
        owner: User,
        slug: str | None = None,
        *,
        started: bool = True,
        ended: bool = False,
        is_recruiting: bool = True,
    ) -> Community:
        slug = slug or f"community-{next(_COMMUNITY_COUNTER)}"
        now = utcnow()
        if ended:
            starts_at, ends_at = now - timedelta(days=30), now - timedelta(days=1)
        elif started:
            starts_at, ends_at = now - timedelta(days=1), now + timedelta(days=30)
        else:
            starts_at, ends_at = now + timedelta(days=1), now + timedelta(days=30)
        return community_service.create_community(
            db_session,
            owner,
            name=slug.replace("-", " ").title(),
            slug=slug,
            starts_at=starts_at,
            ends_at=ends_at,
            profile_name=f"{owner.login_name} owner",
            profile_username=f"{owner.login_name}_{slug.replace('-', '_')}",
            is_recruiting=is_recruiting,
        )

    return _make_community


@pytest.fixture()
def add_member(db_session: Session) -> Callable[..., Profile]:
    """Return a factory joining a user to a community; yields their primary profile."""

    def _add_member(
        community: Community,
        user: User,
        role: MembershipRole = MembershipRole.MEMBER,
        username: str | None = None,
    ) -> Profile:
        membership_service.create_membership(db_session, user.id, community.id, role)
        profile = Profile(
            community_id=community.id,
            name=f"{user.login_name} in {community.slug}",
            username=username or f"{user.login_name}_p{next(_PROFILE_COUNTER)}",
            is_primary=True,
        )
        activate(profile)
        db_session.add(profile)
        db_session.flush()
        profile_ownership.create_profile_ownership(db_session, profile.id, user.id)
        db_session.commit()
        return profile

    return _add_member


@pytest.fixture()
def password() -> str:
    return TEST_PASSWORD


def primary_profile(db: Session, user: User, community: Community) -> Profile:
    profile_id = profile_ownership.get_primary_profile_id_for_user_in_community(
        db, user.id, community.id
    )
    assert profile_id is not None
    return db.get(Profile, profile_id)


# Standard cast ---------------------------------------------------------------


@pytest.fixture()
def owner(make_user: Callable[..., User]) -> User:
    return make_user("owner")


@pytest.fixture()
def community(make_community: Callable[..., Community], owner: User) -> Community:
    return make_community(owner, "garden")


@pytest.fixture()
def owner_profile(db_session: Session, owner: User, community: Community) -> Profile:
    return primary_profile(db_session, owner, community)


@pytest.fixture()
def member(make_user: Callable[..., User]) -> User:
    return make_user("member")


@pytest.fixture()
def member_profile(
    add_member: Callable[..., Profile], community: Community, member: User
) -> Profile:
    return add_member(community, member, username="member_one")


@pytest.fixture()
def moderator(make_user: Callable[..., User]) -> User:
    return make_user("moderator")


@pytest.fixture()
def moderator_profile(
    add_member: Callable[..., Profile], community: Community, moderator: User
) -> Profile:
    return add_member(community, moderator, MembershipRole.MODERATOR, username="mod_one")


@pytest.fixture()
def outsider(make_user: Callable[..., User]) -> User:
    return make_user("outsider")


# Headers ---------------------------------------------------------------------


def community_origin(community: Community) -> str:
    return f"https://{community.slug}.{settings.base_domain}"


@pytest.fixture()
def origin_headers() -> Callable[[Community], dict[str, str]]:
    """Return a builder for the Origin header addressing a community."""

    def _headers(community: Community) -> dict[str, str]:
        return {"Origin": community_origin(community)}

    return _headers


@pytest.fixture()
def app_headers(db_session: Session) -> Callable[[User, Community], dict[str, str]]:
    """Return a builder for bearer + Origin headers of a community-bound session."""

    def _headers(user: User, community: Community) -> dict[str, str]:
        issued = auth_service.create_session(db_session, user, community.id)
        return {
            "Authorization": f"Bearer {issued.token}",
            "Origin": community_origin(community),
        }

    return _headers


@pytest.fixture()
def console_headers(db_session: Session) -> Callable[[User], dict[str, str]]:
    """Return a builder for the console session cookie header."""

    def _headers(user: User) -> dict[str, str]:
        issued = auth_service.create_session(db_session, user)
        return {"Cookie": f"{settings.session_cookie_name}={issued.token}"}

    return _headers


@pytest.fixture()
def make_context(db_session: Session) -> Callable[[User, Community], AuthContext]:
    """Return a builder for the request context services receive."""

    def _context(user: User, community: Community) -> AuthContext:
        membership = membership_service.get_user_membership(db_session, user.id, community.id)
        assert membership is not None
        return AuthContext(user=user, community=community, membership=membership)

    return _context
