"""Blocking users from the console."""

from fastapi import status


def test_block_list_and_unblock(client, console_headers, member, outsider) -> None:
    headers = console_headers(member)

    blocked = client.post(f"/console/blocks/{outsider.id}", headers=headers)
    assert blocked.status_code == status.HTTP_201_CREATED
    assert blocked.json()["login_name"] == "outsider"

    again = client.post(f"/console/blocks/{outsider.id}", headers=headers)
    assert again.status_code == status.HTTP_409_CONFLICT

    listed = client.get("/console/blocks", headers=headers).json()
    assert [(item["id"], item["login_name"]) for item in listed] == [(outsider.id, "outsider")]

    removed = client.delete(f"/console/blocks/{outsider.id}", headers=headers)
    assert removed.status_code == status.HTTP_204_NO_CONTENT
    assert client.get("/console/blocks", headers=headers).json() == []
    missing = client.delete(f"/console/blocks/{outsider.id}", headers=headers)
    assert missing.status_code == status.HTTP_404_NOT_FOUND


def test_blocking_requires_a_session(client, outsider) -> None:
    response = client.post(f"/console/blocks/{outsider.id}")
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_cannot_block_self(client, console_headers, member) -> None:
    response = client.post(f"/console/blocks/{member.id}", headers=console_headers(member))
    assert response.status_code == status.HTTP_400_BAD_REQUEST
