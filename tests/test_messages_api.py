from __future__ import annotations

import pytest

from app.config import settings


@pytest.fixture
def chat(client, make_user):
    admin, member, outsider = make_user("admin"), make_user("member"), make_user("outsider")
    r = client.post("/api/v1/groups", json={"name": "Chat", "member_ids": [member["id"]]}, headers=admin["headers"])
    return r.json(), admin, member, outsider


def url(group, message_id=None):
    base = f"/api/v1/groups/{group['id']}/messages"
    return f"{base}/{message_id}" if message_id else base


def test_members_send_and_read_in_order(client, chat):
    group, admin, member, outsider = chat

    r = client.post(url(group), json={"text": "  hello  "}, headers=member["headers"])
    assert r.status_code == 201
    assert r.json()["text"] == "hello"
    assert r.json()["sender_name"] == "member"
    client.post(url(group), json={"text": "hi back"}, headers=admin["headers"])

    r = client.get(url(group), headers=admin["headers"])
    assert [m["text"] for m in r.json()] == ["hello", "hi back"]


def test_outsiders_cannot_read_or_write(client, chat):
    group, admin, member, outsider = chat
    assert client.get(url(group), headers=outsider["headers"]).status_code == 403
    assert client.post(url(group), json={"text": "x"}, headers=outsider["headers"]).status_code == 403


def test_message_length_is_validated(client, chat):
    group, admin, member, outsider = chat
    assert client.post(url(group), json={"text": "   "}, headers=member["headers"]).status_code == 400
    too_long = "a" * (settings.message_max_length + 1)
    assert client.post(url(group), json={"text": too_long}, headers=member["headers"]).status_code == 400
    exact = "a" * settings.message_max_length
    assert client.post(url(group), json={"text": exact}, headers=member["headers"]).status_code == 201


def test_sender_and_admin_can_delete(client, db, make_user, chat):
    group, admin, member, outsider = chat
    first = client.post(url(group), json={"text": "one"}, headers=member["headers"]).json()
    second = client.post(url(group), json={"text": "two"}, headers=member["headers"]).json()

    assert client.delete(url(group, first["id"]), headers=member["headers"]).status_code == 200
    assert client.delete(url(group, second["id"]), headers=admin["headers"]).status_code == 200
    assert db.rows("group_messages") == []


def test_other_members_cannot_delete(client, db, make_user, chat):
    group, admin, member, outsider = chat
    third = make_user("third")
    client.post(f"/api/v1/groups/{group['id']}/members", json={"member_ids": [third["id"]]}, headers=admin["headers"])
    message = client.post(url(group), json={"text": "mine"}, headers=member["headers"]).json()

    r = client.delete(url(group, message["id"]), headers=third["headers"])

    assert r.status_code == 403
    assert len(db.rows("group_messages")) == 1


def test_delete_missing_message_is_404(client, chat):
    group, admin, member, outsider = chat
    assert client.delete(url(group, "nope"), headers=admin["headers"]).status_code == 404
