"""Authentication, tenant resolution and membership checks on the app API."""

from fastapi import status

from commune_api.services import auth as auth_service
from commune_api.services import communities as community_service


def test_missing_token_is_unauthorized(client, community, origin_headers) -> None:
    response = client.get("/app/posts", headers=origin_headers(community))
    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json()["code"] == "UNAUTHORIZED"


def test_garbage_token_is_unauthorized(client, community, origin_headers) -> None:
    response = client.get(
        "/app/posts",
        headers={"Authorization": "Bearer not-a-token", **origin_headers(community)},
    )
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_console_token_is_rejected(
    client, db_session, community, member, member_profile, origin_headers
) -> None:
    issued = auth_service.create_session(db_session, member)
    response = client.get(
        "/app/posts",
        headers={"Authorization": f"Bearer {issued.token}", **origin_headers(community)},
    )
    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_unknown_community_is_not_found(
    client, app_headers, community, member, member_profile
) -> None:
    headers = app_headers(member, community)
    headers["Origin"] = "https://nowhere.commune.local"
    response = client.get("/app/posts", headers=headers)
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_foreign_host_is_bad_request(
    client, app_headers, community, member, member_profile
) -> None:
    headers = app_headers(member, community)
    headers["Origin"] = "https://example.org"
    response = client.get("/app/posts", headers=headers)
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_session_for_other_community_is_forbidden(
    client,
    app_headers,
    origin_headers,
    community,
    member,
    member_profile,
    make_community,
    make_user,
    add_member,
) -> None:
    other = make_community(make_user("other_owner"), "other")
    add_member(other, member, username="member_elsewhere")
    headers = app_headers(member, other)
    headers.update(origin_headers(community))

    response = client.get("/app/posts", headers=headers)
    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_non_member_is_forbidden(client, app_headers, community, outsider) -> None:
    response = client.get("/app/posts", headers=app_headers(outsider, community))
    assert response.status_code == status.HTTP_403_FORBIDDEN
    assert response.json()["code"] == "NOT_A_MEMBER"


def test_login_through_community_origin(
    client, community, member, member_profile, password, origin_headers
) -> None:
    origin = origin_headers(community)
    response = client.post(
        "/app/auth/login", json={"login_name": "member", "password": password}, headers=origin
    )
    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["community_id"] == community.id

    headers = {**origin, "Authorization": f"Bearer {body['token']}"}
    me = client.get("/app/auth/me", headers=headers)
    assert me.json()["login_name"] == "member"

    assert client.post("/app/auth/logout", headers=headers).status_code == 204
    assert client.get("/app/auth/me", headers=headers).status_code == 401


def test_login_rejects_non_members(client, community, outsider, password, origin_headers) -> None:
    response = client.post(
        "/app/auth/login",
        json={"login_name": "outsider", "password": password},
        headers=origin_headers(community),
    )
    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_validation_errors_are_bad_requests(
    client, app_headers, community, member, member_profile
) -> None:
    response = client.post(
        "/app/posts",
        json={"content": "x", "image_ids": "not-a-list"},
        headers=app_headers(member, community),
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["code"] == "VALIDATION_ERROR"


def test_current_community_and_links(client, db_session, community, origin_headers) -> None:
    community_service.create_link(db_session, community.id, "Rules", "https://example.org/rules")
    origin = origin_headers(community)

    info = client.get("/app/community", headers=origin)
    assert info.status_code == status.HTTP_200_OK
    assert info.json()["slug"] == "garden"
    links = client.get("/app/community/links", headers=origin)
    assert [link["title"] for link in links.json()] == ["Rules"]


def test_member_can_leave(client, app_headers, community, member, member_profile) -> None:
    headers = app_headers(member, community)
    assert client.post("/app/community/leave", headers=headers).status_code == 200
    assert client.get("/app/posts", headers=headers).status_code == status.HTTP_403_FORBIDDEN
