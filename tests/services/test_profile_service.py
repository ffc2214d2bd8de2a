"""Tests for profile creation, primary selection, deletion and sharing."""

import pytest
from fastapi import status

from commune_api.core.errors import AppError, ErrorCode
from commune_api.models import ProfileRole
from commune_api.services import profile_ownership
from commune_api.services import profiles as profile_service


def _second_profile(db_session, user, community, username="second_face"):
    return profile_service.create_profile(
        db_session, user.id, community.id, "Second", username
    )


def test_username_availability(db_session, community, member_profile) -> None:
    assert not profile_service.check_username_availability(db_session, "member_one", community.id)
    assert profile_service.check_username_availability(db_session, "free_name", community.id)


def test_username_is_unique_per_community(
    db_session, community, member, member_profile, make_community, make_user, add_member
) -> None:
    with pytest.raises(AppError) as excinfo:
        _second_profile(db_session, member, community, username="member_one")
    assert excinfo.value.status_code == status.HTTP_400_BAD_REQUEST
    assert excinfo.value.code is ErrorCode.USERNAME_TAKEN

    other = make_community(make_user("other_owner"), "other")
    elsewhere = add_member(other, member, username="member_one")
    assert elsewhere.username == "member_one"


def test_new_primary_profile_replaces_old_one(
    db_session, community, member, member_profile
) -> None:
    created = profile_service.create_profile(
        db_session, member.id, community.id, "Fresh", "fresh_face", is_primary=True
    )
    db_session.refresh(member_profile)
    assert created.is_primary
    assert not member_profile.is_primary


def test_set_primary_profile(db_session, community, member, member_profile) -> None:
    second = _second_profile(db_session, member, community)
    profile_service.set_primary_profile(db_session, member.id, second.id, community.id)

    primaries = [
        profile.id
        for profile in profile_ownership.get_owned_profiles(db_session, member.id, community.id)
        if profile.is_primary
    ]
    assert primaries == [second.id]


def test_set_primary_requires_owner_grant(
    db_session, community, member_profile, moderator, moderator_profile
) -> None:
    with pytest.raises(AppError) as excinfo:
        profile_service.set_primary_profile(
            db_session, moderator.id, member_profile.id, community.id
        )
    assert excinfo.value.status_code == status.HTTP_403_FORBIDDEN


def test_primary_profile_cannot_be_deleted(db_session, community, member, member_profile) -> None:
    _second_profile(db_session, member, community)
    with pytest.raises(AppError) as excinfo:
        profile_service.delete_profile(db_session, member.id, member_profile.id, community.id)
    assert excinfo.value.status_code == status.HTTP_400_BAD_REQUEST


def test_delete_secondary_profile(db_session, community, member, member_profile) -> None:
    second = _second_profile(db_session, member, community)
    deleted = profile_service.delete_profile(db_session, member.id, second.id, community.id)

    assert deleted.deleted_at is not None
    assert profile_service.check_username_availability(db_session, "second_face", community.id)


def test_only_profile_cannot_be_deleted(db_session, community, member, member_profile) -> None:
    member_profile.is_primary = False
    db_session.commit()

    with pytest.raises(AppError) as excinfo:
        profile_service.delete_profile(db_session, member.id, member_profile.id, community.id)
    assert excinfo.value.status_code == status.HTTP_400_BAD_REQUEST
    assert "at least one profile" in excinfo.value.message
    db_session.refresh(member_profile)
    assert member_profile.deleted_at is None


def test_update_profile_rejects_taken_username(
    db_session, community, member, member_profile, moderator_profile
) -> None:
    with pytest.raises(AppError) as excinfo:
        profile_service.update_profile(
            db_session, member.id, member_profile.id, community.id, username="mod_one"
        )
    assert excinfo.value.code is ErrorCode.USERNAME_TAKEN

    updated = profile_service.update_profile(
        db_session, member.id, member_profile.id, community.id, name="Renamed", bio="Hi"
    )
    assert (updated.name, updated.bio) == ("Renamed", "Hi")


def test_share_profile_grants_admin_access(
    db_session, community, member, member_profile, moderator, moderator_profile
) -> None:
    second = _second_profile(db_session, member, community)
    grant = profile_service.share_profile_with_user(
        db_session, member.id, second.id, community.id, "mod_one"
    )

    assert grant.role is ProfileRole.ADMIN
    assert profile_ownership.can_use_profile(db_session, moderator.id, second.id)
    assert not profile_ownership.can_manage_profile(db_session, moderator.id, second.id)
    shared = profile_service.get_profile_shared_users(
        db_session, member.id, second.id, community.id
    )
    assert [entry.user.id for entry in shared] == [member.id, moderator.id]


def test_sharing_twice_conflicts(
    db_session, community, member, member_profile, moderator_profile
) -> None:
    second = _second_profile(db_session, member, community)
    profile_service.share_profile_with_user(
        db_session, member.id, second.id, community.id, "mod_one"
    )
    with pytest.raises(AppError) as excinfo:
        profile_service.share_profile_with_user(
            db_session, member.id, second.id, community.id, "mod_one"
        )
    assert excinfo.value.status_code == status.HTTP_409_CONFLICT
    assert excinfo.value.code is ErrorCode.ALREADY_SHARED


def test_primary_profile_cannot_be_shared(
    db_session, community, member, member_profile, moderator_profile
) -> None:
    with pytest.raises(AppError) as excinfo:
        profile_service.share_profile_with_user(
            db_session, member.id, member_profile.id, community.id, "mod_one"
        )
    assert excinfo.value.status_code == status.HTTP_400_BAD_REQUEST


def test_share_with_unknown_username(db_session, community, member, member_profile) -> None:
    second = _second_profile(db_session, member, community)
    with pytest.raises(AppError) as excinfo:
        profile_service.share_profile_with_user(
            db_session, member.id, second.id, community.id, "nobody_here"
        )
    assert excinfo.value.status_code == status.HTTP_404_NOT_FOUND


def test_only_owner_can_share(
    db_session, community, member, member_profile, moderator, moderator_profile
) -> None:
    second = _second_profile(db_session, member, community)
    with pytest.raises(AppError) as excinfo:
        profile_service.share_profile_with_user(
            db_session, moderator.id, second.id, community.id, "member_one"
        )
    assert excinfo.value.status_code == status.HTTP_403_FORBIDDEN


def test_sole_owner_cannot_be_unshared(db_session, community, member, member_profile) -> None:
    second = _second_profile(db_session, member, community)
    with pytest.raises(AppError) as excinfo:
        profile_service.remove_user_from_profile_sharing(
            db_session, member.id, second.id, community.id, member.id
        )
    assert excinfo.value.status_code == status.HTTP_400_BAD_REQUEST


def test_unshare_removes_admin_grant(
    db_session, community, member, member_profile, moderator, moderator_profile
) -> None:
    second = _second_profile(db_session, member, community)
    profile_service.share_profile_with_user(
        db_session, member.id, second.id, community.id, "mod_one"
    )
    profile_service.remove_user_from_profile_sharing(
        db_session, member.id, second.id, community.id, moderator.id
    )
    assert not profile_ownership.can_use_profile(db_session, moderator.id, second.id)


def test_acting_profile_must_belong_to_user_and_community(
    db_session, community, member_profile, outsider, make_community
) -> None:
    other = make_community(outsider, "other")
    with pytest.raises(AppError) as excinfo:
        profile_service.require_acting_profile(
            db_session, outsider.id, member_profile.id, community.id
        )
    assert excinfo.value.status_code == status.HTTP_404_NOT_FOUND

    outsider_profile_id = profile_ownership.get_primary_profile_id_for_user_in_community(
        db_session, outsider.id, other.id
    )
    with pytest.raises(AppError):
        profile_service.require_acting_profile(
            db_session, outsider.id, outsider_profile_id, community.id
        )
