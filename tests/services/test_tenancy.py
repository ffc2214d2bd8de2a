"""Tests for hostname-based community resolution."""

from datetime import timedelta

import pytest
from fastapi import status

from commune_api.core.errors import AppError
from commune_api.db.time import utcnow
from commune_api.models import AuthSession
from commune_api.services.tenancy import (
    ensure_session_matches,
    extract_hostname,
    resolve_community,
)


def test_origin_wins_over_host() -> None:
    assert extract_hostname("https://Garden.commune.local", "other.commune.local") == (
        "garden.commune.local"
    )


def test_host_port_is_stripped() -> None:
    assert extract_hostname(None, "garden.commune.local:8000") == "garden.commune.local"


def test_missing_hostname_is_bad_request() -> None:
    with pytest.raises(AppError) as excinfo:
        extract_hostname(None, None)
    assert excinfo.value.status_code == status.HTTP_400_BAD_REQUEST


def test_malformed_origin_is_bad_request() -> None:
    with pytest.raises(AppError) as excinfo:
        extract_hostname("not a url", None)
    assert excinfo.value.status_code == status.HTTP_400_BAD_REQUEST


def test_resolve_by_slug(db_session, community) -> None:
    assert resolve_community(db_session, "garden.commune.local").id == community.id


def test_unknown_slug_is_not_found(db_session, community) -> None:
    with pytest.raises(AppError) as excinfo:
        resolve_community(db_session, "nowhere.commune.local")
    assert excinfo.value.status_code == status.HTTP_404_NOT_FOUND


def test_bare_base_domain_is_not_found(db_session, community) -> None:
    with pytest.raises(AppError) as excinfo:
        resolve_community(db_session, "commune.local")
    assert excinfo.value.status_code == status.HTTP_404_NOT_FOUND


def test_foreign_domain_is_bad_request(db_session, community) -> None:
    with pytest.raises(AppError) as excinfo:
        resolve_community(db_session, "example.org")
    assert excinfo.value.status_code == status.HTTP_400_BAD_REQUEST


def test_deleted_community_does_not_resolve(db_session, community) -> None:
    community.deleted_at = utcnow()
    db_session.commit()
    with pytest.raises(AppError) as excinfo:
        resolve_community(db_session, "garden.commune.local")
    assert excinfo.value.status_code == status.HTTP_404_NOT_FOUND


def test_verified_custom_domain_resolves(db_session, community) -> None:
    community.custom_domain = "garden.example.org"
    community.domain_verified_at = utcnow()
    db_session.commit()
    assert resolve_community(db_session, "garden.example.org").id == community.id


def test_unverified_custom_domain_does_not_resolve(db_session, community) -> None:
    community.custom_domain = "garden.example.org"
    db_session.commit()
    with pytest.raises(AppError) as excinfo:
        resolve_community(db_session, "garden.example.org")
    assert excinfo.value.status_code == status.HTTP_400_BAD_REQUEST


def test_session_bound_elsewhere_is_forbidden(community) -> None:
    session = AuthSession(
        user_id=1, community_id=community.id + 1, expires_at=utcnow() + timedelta(days=1)
    )
    with pytest.raises(AppError) as excinfo:
        ensure_session_matches(session, community)
    assert excinfo.value.status_code == status.HTTP_403_FORBIDDEN


def test_matching_or_console_session_passes(community) -> None:
    expires = utcnow() + timedelta(days=1)
    ensure_session_matches(
        AuthSession(user_id=1, community_id=community.id, expires_at=expires), community
    )
    ensure_session_matches(AuthSession(user_id=1, community_id=None, expires_at=expires), community)
