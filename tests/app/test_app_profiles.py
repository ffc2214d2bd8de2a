"""Profile endpoints on the app API."""

import pytest
from fastapi import status


@pytest.fixture()
def member_headers(app_headers, community, member, member_profile):
    return app_headers(member, community)


def test_list_my_profiles(client, member_headers, member_profile) -> None:
    profiles = client.get("/app/me/profiles", headers=member_headers).json()
    assert [(item["id"], item["role"], item["is_primary"]) for item in profiles] == [
        (member_profile.id, "owner", True)
    ]


def test_create_switch_and_delete_profile(client, member_headers, member_profile) -> None:
    created = client.post(
        "/app/me/profiles",
        json={"name": "Night owl", "username": "night_owl", "bio": "Late posts"},
        headers=member_headers,
    )
    assert created.status_code == status.HTTP_201_CREATED
    alt_id = created.json()["id"]

    primary = client.post(f"/app/me/profiles/{alt_id}/primary", headers=member_headers)
    assert primary.json()["is_primary"] is True

    blocked = client.delete(f"/app/me/profiles/{alt_id}", headers=member_headers)
    assert blocked.status_code == status.HTTP_400_BAD_REQUEST

    removed = client.delete(f"/app/me/profiles/{member_profile.id}", headers=member_headers)
    assert removed.status_code == status.HTTP_204_NO_CONTENT
    remaining = client.get("/app/me/profiles", headers=member_headers).json()
    assert [item["id"] for item in remaining] == [alt_id]


def test_duplicate_username_is_rejected(client, member_headers, owner_profile) -> None:
    response = client.post(
        "/app/me/profiles",
        json={"name": "Copycat", "username": owner_profile.username},
        headers=member_headers,
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["code"] == "USERNAME_TAKEN"


def test_update_profile(client, member_headers, member_profile) -> None:
    response = client.put(
        f"/app/me/profiles/{member_profile.id}",
        json={"name": "Member One", "bio": "Gardener"},
        headers=member_headers,
    )
    assert response.status_code == status.HTTP_200_OK
    assert (response.json()["name"], response.json()["bio"]) == ("Member One", "Gardener")


def test_check_username(client, member_headers) -> None:
    taken = client.get(
        "/app/profiles/check-username", params={"username": "member_one"}, headers=member_headers
    )
    free = client.get(
        "/app/profiles/check-username", params={"username": "fresh_name"}, headers=member_headers
    )
    assert taken.json()["available"] is False
    assert free.json()["available"] is True


def test_public_profile_and_posts(client, member_headers, app_headers, owner, community) -> None:
    owner_headers = app_headers(owner, community)
    client.post("/app/posts", json={"content": "First"}, headers=owner_headers)
    second = client.post("/app/posts", json={"content": "Second"}, headers=owner_headers).json()
    client.post(f"/app/posts/{second['id']}/pin", headers=owner_headers)

    profile = client.get("/app/profiles/owner_garden", headers=member_headers)
    assert profile.status_code == status.HTTP_200_OK
    assert profile.json()["is_primary"] is True

    posts = client.get("/app/profiles/owner_garden/posts", headers=member_headers).json()
    assert [post["content"] for post in posts] == ["Second", "First"]

    missing = client.get("/app/profiles/nobody_here", headers=member_headers)
    assert missing.status_code == status.HTTP_404_NOT_FOUND


def test_profile_sharing_flow(
    client, member_headers, app_headers, community, moderator, moderator_profile
) -> None:
    alt = client.post(
        "/app/me/profiles",
        json={"name": "Shared", "username": "shared_face"},
        headers=member_headers,
    ).json()

    shared = client.post(
        f"/app/me/profiles/{alt['id']}/users", json={"username": "mod_one"}, headers=member_headers
    )
    assert shared.status_code == status.HTTP_201_CREATED
    assert shared.json()["role"] == "admin"

    again = client.post(
        f"/app/me/profiles/{alt['id']}/users", json={"username": "mod_one"}, headers=member_headers
    )
    assert again.status_code == status.HTTP_409_CONFLICT

    moderator_headers = app_headers(moderator, community)
    mine = client.get("/app/me/profiles", headers=moderator_headers).json()
    assert {(item["username"], item["role"]) for item in mine} == {
        ("mod_one", "owner"),
        ("shared_face", "admin"),
    }

    users = client.get(f"/app/me/profiles/{alt['id']}/users", headers=member_headers).json()
    assert [user["role"] for user in users] == ["owner", "admin"]

    removed = client.delete(
        f"/app/me/profiles/{alt['id']}/users/{moderator.id}", headers=member_headers
    )
    assert removed.status_code == status.HTTP_204_NO_CONTENT
