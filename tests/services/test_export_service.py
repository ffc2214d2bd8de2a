"""Tests for the per-user export queue and its archive."""

import json
from unittest.mock import patch

import pytest
from fastapi import status
from sqlalchemy.exc import OperationalError

from commune_api.core.errors import AppError
from commune_api.models import ExportStatus
from commune_api.services import exports as export_service
from commune_api.services import membership as membership_service
from commune_api.services import messages as message_service
from commune_api.services import posts as post_service


def test_export_writes_archive(
    db_session, community, member, member_profile, owner_profile, make_context
) -> None:
    post_service.create_post(
        db_session, make_context(member, community), member_profile, "My words"
    )
    message_service.send_direct_message(db_session, owner_profile, member_profile.id, "Hello")

    job = export_service.create_export_job(db_session, community.id, member.id)
    assert job.status is ExportStatus.PENDING
    assert export_service.get_next_pending_job(db_session).id == job.id

    processed = export_service.process_export_job(db_session, job.id)
    assert processed.status is ExportStatus.COMPLETED
    assert processed.completed_at is not None
    assert processed.expires_at > processed.completed_at
    assert export_service.get_next_pending_job(db_session) is None

    path = export_service.export_file_path(processed)
    archive = json.loads(path.read_text(encoding="utf-8"))
    assert [profile["username"] for profile in archive["profiles"]] == ["member_one"]
    assert [post["content"] for post in archive["posts"]] == ["My words"]
    assert [message["content"] for message in archive["direct_messages"]] == ["Hello"]


def test_one_export_in_flight(db_session, community, member, member_profile) -> None:
    export_service.create_export_job(db_session, community.id, member.id)
    with pytest.raises(AppError) as excinfo:
        export_service.create_export_job(db_session, community.id, member.id)
    assert excinfo.value.status_code == status.HTTP_409_CONFLICT


def test_outsider_cannot_export(db_session, community, outsider) -> None:
    with pytest.raises(AppError) as excinfo:
        export_service.create_export_job(db_session, community.id, outsider.id)
    assert excinfo.value.status_code == status.HTTP_403_FORBIDDEN


def test_status_is_private_to_requester(
    db_session, community, member, member_profile, owner
) -> None:
    job = export_service.create_export_job(db_session, community.id, member.id)
    assert export_service.get_export_job_status(db_session, job.id, member.id).id == job.id

    with pytest.raises(AppError) as excinfo:
        export_service.get_export_job_status(db_session, job.id, owner.id)
    assert excinfo.value.status_code == status.HTTP_404_NOT_FOUND


def test_status_requires_current_membership(
    db_session, community, member, member_profile
) -> None:
    job = export_service.create_export_job(db_session, community.id, member.id)
    membership_service.leave_community(db_session, member.id, community.id)
    with pytest.raises(AppError) as excinfo:
        export_service.get_export_job_status(db_session, job.id, member.id)
    assert excinfo.value.status_code == status.HTTP_403_FORBIDDEN


def test_pending_job_has_no_file(db_session, community, member, member_profile) -> None:
    job = export_service.create_export_job(db_session, community.id, member.id)
    assert export_service.export_file_path(job) is None
    recent = export_service.get_user_exports(db_session, community.id, member.id)
    assert [item.id for item in recent] == [job.id]


def test_failed_archive_marks_job_failed(db_session, community, member, member_profile) -> None:
    job = export_service.create_export_job(db_session, community.id, member.id)
    locked = OperationalError("SELECT 1", {}, Exception("database is locked"))

    with patch(
        "commune_api.services.exports.build_export_archive", side_effect=locked
    ):
        failed = export_service.process_export_job(db_session, job.id)

    assert failed.status is ExportStatus.FAILED
    assert "database is locked" in failed.error_message
    assert export_service.get_next_pending_job(db_session) is None

    retry = export_service.create_export_job(db_session, community.id, member.id)
    assert retry.id != job.id
    assert retry.status is ExportStatus.PENDING
