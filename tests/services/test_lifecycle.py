"""Tests for the activation lifecycle and role checks."""

from types import SimpleNamespace

import pytest
from fastapi import status

from commune_api.core.errors import AppError, ErrorCode
from commune_api.models import Membership, MembershipRole
from commune_api.models.lifecycle import (
    Lifecycle,
    LifecycleError,
    activate,
    deactivate,
    lifecycle_of,
    soft_delete,
)
from commune_api.models.membership import OWNER_ONLY, STAFF
from commune_api.services.authz import require_role


def _row(**fields):
    defaults = {"activated_at": None, "deactivated_at": None, "deleted_at": None}
    defaults.update(fields)
    return SimpleNamespace(**defaults)


def test_new_row_is_pending() -> None:
    assert lifecycle_of(_row()) is Lifecycle.PENDING


def test_activate_then_deactivate() -> None:
    row = _row()
    activate(row)
    assert lifecycle_of(row) is Lifecycle.ACTIVE
    deactivate(row)
    assert lifecycle_of(row) is Lifecycle.DEACTIVATED
    assert row.activated_at is None
    assert row.deactivated_at is not None


def test_activating_active_row_keeps_timestamp() -> None:
    row = _row()
    activate(row)
    first = row.activated_at
    activate(row)
    assert row.activated_at == first


def test_deleted_is_terminal() -> None:
    row = _row()
    activate(row)
    soft_delete(row)
    assert lifecycle_of(row) is Lifecycle.DELETED
    with pytest.raises(LifecycleError):
        activate(row)
    with pytest.raises(LifecycleError):
        soft_delete(row)


def test_deactivate_ignores_non_active_rows() -> None:
    row = _row()
    deactivate(row)
    assert lifecycle_of(row) is Lifecycle.PENDING


def _membership(role: MembershipRole, active: bool = True) -> Membership:
    membership = Membership(user_id=1, community_id=1, role=role)
    if active:
        activate(membership)
    return membership


def test_require_role_accepts_allowed_role() -> None:
    membership = _membership(MembershipRole.MODERATOR)
    assert require_role(membership, STAFF) is membership


def test_require_role_rejects_missing_membership() -> None:
    with pytest.raises(AppError) as excinfo:
        require_role(None, STAFF)
    assert excinfo.value.status_code == status.HTTP_403_FORBIDDEN
    assert excinfo.value.code is ErrorCode.NOT_A_MEMBER


def test_require_role_rejects_inactive_membership() -> None:
    with pytest.raises(AppError) as excinfo:
        require_role(_membership(MembershipRole.OWNER, active=False), OWNER_ONLY)
    assert excinfo.value.code is ErrorCode.NOT_A_MEMBER


def test_require_role_rejects_wrong_role() -> None:
    with pytest.raises(AppError) as excinfo:
        require_role(_membership(MembershipRole.MODERATOR), OWNER_ONLY)
    assert excinfo.value.status_code == status.HTTP_403_FORBIDDEN
    assert excinfo.value.code is ErrorCode.ACCESS_DENIED
