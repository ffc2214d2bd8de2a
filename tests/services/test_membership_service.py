"""Tests for membership roles, ownership transfer, removal and leaving."""

import pytest
from fastapi import status
from sqlalchemy import func, select

from commune_api.core.errors import AppError, ErrorCode
from commune_api.models import Membership, MembershipRole, ProfileRole
from commune_api.services import membership as membership_service
from commune_api.services import profile_ownership


def _active_owner_count(db_session, community_id: int) -> int:
    return db_session.scalar(
        select(func.count(Membership.id)).where(
            Membership.community_id == community_id,
            Membership.role == MembershipRole.OWNER,
            Membership.activated_at.is_not(None),
        )
    )


def _membership(db_session, user, community) -> Membership:
    membership = membership_service.get_user_membership(db_session, user.id, community.id)
    assert membership is not None
    return membership


def test_creator_is_owner(db_session, owner, community) -> None:
    assert membership_service.is_user_community_owner(db_session, owner.id, community.id)
    assert _active_owner_count(db_session, community.id) == 1


def test_validate_membership_role(db_session, community, member, member_profile) -> None:
    with pytest.raises(AppError) as excinfo:
        membership_service.validate_membership_role(
            db_session, member.id, community.id, [MembershipRole.OWNER]
        )
    assert excinfo.value.code is ErrorCode.ACCESS_DENIED


def test_promoting_to_owner_transfers_ownership(
    db_session, owner, community, member, member_profile
) -> None:
    target = _membership(db_session, member, community)
    result = membership_service.update_member_role(
        db_session, community.id, target.id, MembershipRole.OWNER, owner.id
    )

    assert result.transferred is True
    assert _membership(db_session, member, community).role is MembershipRole.OWNER
    assert _membership(db_session, owner, community).role is MembershipRole.MODERATOR
    assert _active_owner_count(db_session, community.id) == 1


def test_transfer_to_self_is_rejected(db_session, owner, community) -> None:
    with pytest.raises(AppError) as excinfo:
        membership_service.transfer_ownership(db_session, community.id, owner.id, owner.id)
    assert excinfo.value.status_code == status.HTTP_400_BAD_REQUEST


def test_owner_role_cannot_be_changed_directly(db_session, owner, community) -> None:
    own = _membership(db_session, owner, community)
    with pytest.raises(AppError) as excinfo:
        membership_service.update_member_role(
            db_session, community.id, own.id, MembershipRole.MEMBER, owner.id
        )
    assert excinfo.value.status_code == status.HTTP_400_BAD_REQUEST


def test_non_owner_cannot_change_roles(
    db_session, community, member, member_profile, moderator, moderator_profile
) -> None:
    target = _membership(db_session, member, community)
    with pytest.raises(AppError) as excinfo:
        membership_service.update_member_role(
            db_session, community.id, target.id, MembershipRole.MODERATOR, moderator.id
        )
    assert excinfo.value.status_code == status.HTTP_403_FORBIDDEN


def test_demoting_moderator_revokes_shared_grants(
    db_session, owner, community, moderator, moderator_profile, add_member, make_user
) -> None:
    third = make_user("third")
    third_profile = add_member(community, third, username="third_one")
    profile_ownership.add_user_to_profile(
        db_session, third_profile.id, moderator.id, ProfileRole.ADMIN, third.id
    )
    db_session.commit()

    target = _membership(db_session, moderator, community)
    membership_service.update_member_role(
        db_session, community.id, target.id, MembershipRole.MEMBER, owner.id
    )

    grant = profile_ownership.get_profile_ownership(db_session, moderator.id, third_profile.id)
    assert grant is None


def test_remove_member_deactivates_profiles(
    db_session, owner, community, member, member_profile
) -> None:
    target = _membership(db_session, member, community)
    membership_service.remove_member(db_session, community.id, target.id, owner.id)

    assert membership_service.get_user_membership(db_session, member.id, community.id) is None
    db_session.refresh(member_profile)
    assert not member_profile.is_active


def test_owner_cannot_be_removed(db_session, owner, community) -> None:
    own = _membership(db_session, owner, community)
    with pytest.raises(AppError) as excinfo:
        membership_service.remove_member(db_session, community.id, own.id, owner.id)
    assert excinfo.value.status_code == status.HTTP_400_BAD_REQUEST


def test_remove_unknown_member_is_not_found(db_session, owner, community) -> None:
    with pytest.raises(AppError) as excinfo:
        membership_service.remove_member(db_session, community.id, 999_999, owner.id)
    assert excinfo.value.status_code == status.HTTP_404_NOT_FOUND


def test_owner_cannot_leave(db_session, owner, community) -> None:
    with pytest.raises(AppError) as excinfo:
        membership_service.leave_community(db_session, owner.id, community.id)
    assert excinfo.value.status_code == status.HTTP_403_FORBIDDEN


def test_member_leaves(db_session, community, member, member_profile) -> None:
    membership_service.leave_community(db_session, member.id, community.id)
    assert membership_service.get_user_membership(db_session, member.id, community.id) is None
    with pytest.raises(AppError) as excinfo:
        membership_service.leave_community(db_session, member.id, community.id)
    assert excinfo.value.status_code == status.HTTP_404_NOT_FOUND


def test_community_members_lists_active_profiles(
    db_session, community, owner, member, member_profile
) -> None:
    entries = membership_service.get_community_members(db_session, community.id)
    by_user = {entry.user.id: entry for entry in entries}
    assert set(by_user) == {owner.id, member.id}
    assert [profile.id for profile in by_user[member.id].profiles] == [member_profile.id]
