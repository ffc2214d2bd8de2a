"""Post, bookmark and reaction endpoints."""

from datetime import timedelta

import pytest
from fastapi import status

from commune_api.db.time import utcnow
from commune_api.services import profiles as profile_service


@pytest.fixture()
def member_headers(app_headers, community, member, member_profile):
    return app_headers(member, community)


@pytest.fixture()
def owner_headers(app_headers, community, owner):
    return app_headers(owner, community)


def _post(client, headers, content="Hello garden", **extra):
    response = client.post("/app/posts", json={"content": content, **extra}, headers=headers)
    assert response.status_code == status.HTTP_201_CREATED, response.text
    return response.json()


def test_create_and_list_posts(client, member_headers, member_profile) -> None:
    created = _post(client, member_headers)
    assert created["author"]["username"] == "member_one"
    assert created["depth"] == 0

    listing = client.get("/app/posts", headers=member_headers).json()
    assert [item["id"] for item in listing["items"]] == [created["id"]]
    assert listing["has_more"] is False


def test_thread_view(client, member_headers, owner_headers) -> None:
    root = _post(client, owner_headers, "Question")
    reply = _post(client, member_headers, "Answer", in_reply_to_id=root["id"])

    thread = client.get(f"/app/posts/{root['id']}", headers=member_headers).json()
    assert [item["id"] for item in thread["replies"]] == [reply["id"]]
    assert thread["parents"] == []

    listing = client.get("/app/posts", headers=member_headers).json()
    assert [item["id"] for item in listing["items"]] == [root["id"]]


def test_post_from_other_community_is_hidden(
    client, member_headers, app_headers, make_community, make_user
) -> None:
    other_owner = make_user("other_owner")
    other = make_community(other_owner, "other")
    foreign = _post(client, app_headers(other_owner, other), "Elsewhere")

    response = client.get(f"/app/posts/{foreign['id']}", headers=member_headers)
    assert response.status_code == status.HTTP_404_NOT_FOUND
    response = client.post(f"/app/posts/{foreign['id']}/bookmark", headers=member_headers)
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_announcements_are_owner_only(client, member_headers, owner_headers) -> None:
    response = client.post(
        "/app/posts", json={"content": "Notice", "announcement": True}, headers=member_headers
    )
    assert response.status_code == status.HTTP_403_FORBIDDEN

    notice = _post(client, owner_headers, "Notice", announcement=True)
    announcements = client.get("/app/posts/announcements", headers=member_headers).json()
    assert [item["id"] for item in announcements] == [notice["id"]]


def test_scheduled_posts_listing(client, owner_headers) -> None:
    when = (utcnow() + timedelta(hours=3)).isoformat()
    scheduled = _post(client, owner_headers, "Later", scheduled_at=when)
    assert scheduled["published_at"] is None

    pending = client.get("/app/posts/scheduled", headers=owner_headers).json()
    assert [item["id"] for item in pending] == [scheduled["id"]]
    assert client.get("/app/posts", headers=owner_headers).json()["items"] == []


def test_delete_by_author_and_staff(client, member_headers, owner_headers) -> None:
    own = _post(client, member_headers, "Mine")
    theirs = _post(client, owner_headers, "Owner's")

    response = client.delete(f"/app/posts/{theirs['id']}", headers=member_headers)
    assert response.status_code == status.HTTP_403_FORBIDDEN

    assert client.delete(f"/app/posts/{own['id']}", headers=member_headers).status_code == 204
    second = _post(client, member_headers, "Another")
    assert client.delete(f"/app/posts/{second['id']}", headers=owner_headers).status_code == 204

    logs = client.get("/app/moderation/logs", headers=owner_headers).json()
    assert [entry["target_post_id"] for entry in logs] == [second["id"]]


def test_pin_and_unpin(client, member_headers) -> None:
    post = _post(client, member_headers)
    pinned = client.post(f"/app/posts/{post['id']}/pin", headers=member_headers)
    assert pinned.status_code == status.HTTP_200_OK
    assert pinned.json()["pinned_at"] is not None

    again = client.post(f"/app/posts/{post['id']}/pin", headers=member_headers)
    assert again.status_code == status.HTTP_409_CONFLICT

    unpinned = client.delete(f"/app/posts/{post['id']}/pin", headers=member_headers)
    assert unpinned.json()["pinned_at"] is None


def test_bookmarks(client, member_headers, owner_headers) -> None:
    post = _post(client, owner_headers)
    created = client.post(f"/app/posts/{post['id']}/bookmark", headers=member_headers)
    assert created.status_code == status.HTTP_201_CREATED
    assert created.json()["is_bookmarked"] is True

    duplicate = client.post(f"/app/posts/{post['id']}/bookmark", headers=member_headers)
    assert duplicate.status_code == status.HTTP_409_CONFLICT

    page = client.get("/app/bookmarks", headers=member_headers).json()
    assert [item["id"] for item in page["items"]] == [post["id"]]
    assert page["items"][0]["bookmarked_at"] is not None

    removed = client.delete(f"/app/posts/{post['id']}/bookmark", headers=member_headers)
    assert removed.status_code == status.HTTP_204_NO_CONTENT
    assert client.get("/app/bookmarks", headers=member_headers).json()["items"] == []


def test_reactions(client, member_headers, owner_headers) -> None:
    post = _post(client, owner_headers)
    reacted = client.post(
        f"/app/posts/{post['id']}/reactions", json={"emoji": "👍"}, headers=member_headers
    )
    assert reacted.status_code == status.HTTP_201_CREATED
    assert [reaction["emoji"] for reaction in reacted.json()["reactions"]] == ["👍"]

    duplicate = client.post(
        f"/app/posts/{post['id']}/reactions", json={"emoji": "👍"}, headers=member_headers
    )
    assert duplicate.status_code == status.HTTP_400_BAD_REQUEST

    removed = client.delete(f"/app/posts/{post['id']}/reactions/👍", headers=member_headers)
    assert removed.status_code == status.HTTP_204_NO_CONTENT


def test_acting_as_another_owned_profile(
    client, db_session, member_headers, community, member, member_profile
) -> None:
    alt = profile_service.create_profile(db_session, member.id, community.id, "Alt", "alt_face")
    post = client.post(
        "/app/posts",
        params={"profile_id": alt.id},
        json={"content": "From my alt"},
        headers=member_headers,
    )
    assert post.status_code == status.HTTP_201_CREATED
    assert post.json()["author"]["username"] == "alt_face"


def test_acting_as_someone_elses_profile_is_not_found(
    client, member_headers, owner_profile
) -> None:
    response = client.post(
        "/app/posts",
        params={"profile_id": owner_profile.id},
        json={"content": "Impersonation"},
        headers=member_headers,
    )
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_edit_and_history(client, member_headers, owner_headers) -> None:
    created = _post(client, member_headers, "Seeds for swap")
    base = f"/app/posts/{created['id']}"

    edited = client.put(
        base, json={"content": "Seeds and bulbs for swap"}, headers=member_headers
    )
    assert edited.status_code == status.HTTP_200_OK
    assert edited.json()["content"] == "Seeds and bulbs for swap"
    assert edited.json()["edited_at"] is not None

    denied = client.put(base, json={"content": "Hijacked"}, headers=owner_headers)
    assert denied.status_code == status.HTTP_403_FORBIDDEN

    history = client.get(f"{base}/history", headers=owner_headers).json()
    assert [(entry["content"], entry["edited_by"]["username"]) for entry in history] == [
        ("Seeds for swap", "member_one")
    ]


def test_search(client, member_headers, owner_headers) -> None:
    match = _post(client, owner_headers, "Compost workshop on Sunday")
    _post(client, member_headers, "Anyone have spare pots?")

    found = client.get(
        "/app/posts/search", params={"q": "compost"}, headers=member_headers
    ).json()
    assert [item["id"] for item in found["items"]] == [match["id"]]
    assert found["has_more"] is False

    missing = client.get("/app/posts/search", headers=member_headers)
    assert missing.status_code == status.HTTP_400_BAD_REQUEST
