"""Member management through the console."""

import pytest
from fastapi import status

from commune_api.models import MembershipRole
from commune_api.services import membership as membership_service


@pytest.fixture()
def owner_console(console_headers, owner):
    return console_headers(owner)


@pytest.fixture()
def member_membership(db_session, community, member, member_profile):
    return membership_service.get_user_membership(db_session, member.id, community.id)


def test_list_members(client, owner_console, community, member_profile) -> None:
    response = client.get(f"/console/communities/{community.id}/members", headers=owner_console)
    assert response.status_code == status.HTTP_200_OK
    members = response.json()
    assert [(entry["user"]["login_name"], entry["role"]) for entry in members] == [
        ("owner", "owner"),
        ("member", "member"),
    ]
    assert [profile["username"] for profile in members[1]["profiles"]] == ["member_one"]


def test_members_list_is_staff_only(
    client, console_headers, community, member, member_profile
) -> None:
    response = client.get(
        f"/console/communities/{community.id}/members", headers=console_headers(member)
    )
    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_promote_member_to_moderator(
    client, owner_console, community, member_membership
) -> None:
    response = client.patch(
        f"/console/communities/{community.id}/members/{member_membership.id}",
        json={"role": "moderator"},
        headers=owner_console,
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {
        "membership_id": member_membership.id,
        "role": "moderator",
        "transferred": False,
    }


def test_granting_owner_transfers_ownership(
    client, db_session, owner_console, community, owner, member_membership
) -> None:
    response = client.patch(
        f"/console/communities/{community.id}/members/{member_membership.id}",
        json={"role": "owner"},
        headers=owner_console,
    )
    assert response.json()["transferred"] is True

    previous = membership_service.get_user_membership(db_session, owner.id, community.id)
    assert previous.role is MembershipRole.MODERATOR
    again = client.patch(
        f"/console/communities/{community.id}/members/{member_membership.id}",
        json={"role": "member"},
        headers=owner_console,
    )
    assert again.status_code == status.HTTP_403_FORBIDDEN


def test_remove_member(
    client, owner_console, app_headers, community, member, member_membership
) -> None:
    response = client.delete(
        f"/console/communities/{community.id}/members/{member_membership.id}",
        headers=owner_console,
    )
    assert response.status_code == status.HTTP_204_NO_CONTENT

    headers = app_headers(member, community)
    assert client.get("/app/posts", headers=headers).status_code == status.HTTP_403_FORBIDDEN
    missing = client.delete(
        f"/console/communities/{community.id}/members/{member_membership.id}",
        headers=owner_console,
    )
    assert missing.status_code == status.HTTP_404_NOT_FOUND


def test_owner_cannot_be_removed(client, db_session, owner_console, community, owner) -> None:
    own = membership_service.get_user_membership(db_session, owner.id, community.id)
    response = client.delete(
        f"/console/communities/{community.id}/members/{own.id}", headers=owner_console
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_transfer_ownership(
    client, owner_console, console_headers, community, member, member_profile
) -> None:
    response = client.post(
        f"/console/communities/{community.id}/transfer-ownership",
        json={"new_owner_user_id": member.id},
        headers=owner_console,
    )
    assert response.json() == {"message": "Ownership transferred"}

    mine = client.get("/console/communities", headers=console_headers(member)).json()
    assert mine[0]["role"] == "owner"


def test_transfer_to_outsider_is_not_found(client, owner_console, community, outsider) -> None:
    response = client.post(
        f"/console/communities/{community.id}/transfer-ownership",
        json={"new_owner_user_id": outsider.id},
        headers=owner_console,
    )
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_leave_community(
    client, owner_console, console_headers, community, member, member_profile
) -> None:
    headers = console_headers(member)
    left = client.post(f"/console/communities/{community.id}/leave", headers=headers)
    assert left.json() == {"message": "Left community"}
    assert client.get("/console/communities", headers=headers).json() == []

    stuck = client.post(f"/console/communities/{community.id}/leave", headers=owner_console)
    assert stuck.status_code == status.HTTP_403_FORBIDDEN
