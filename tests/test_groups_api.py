from __future__ import annotations

from datetime import timedelta

from app.modules.groups.invites import InviteTokenCodec
from tests.fakes import FakeSmsSender, mirror_violations


def create_group(client, owner, name="Trip", member_ids=()):
    r = client.post(
        "/api/v1/groups",
        json={"name": name, "description": "", "member_ids": list(member_ids)},
        headers=owner["headers"],
    )
    assert r.status_code == 201, r.text
    return r.json()


def test_requests_without_bearer_token_are_rejected(client):
    r = client.get("/api/v1/groups")
    assert r.status_code in (401, 403)


def test_unknown_identity_token_is_401(client):
    r = client.get("/api/v1/groups", headers={"Authorization": "Bearer nope"})
    assert r.status_code == 401
    assert r.json()["code"] == "invalid_token"


def test_create_and_list_groups(client, db, make_user):
    admin, b = make_user("admin"), make_user("bea")
    group = create_group(client, admin, member_ids=[b["id"]])

    assert group["admin_id"] == admin["id"]
    assert group["members"] == [admin["id"], b["id"]]

    r = client.get("/api/v1/groups", headers=b["headers"])
    assert r.status_code == 200
    [listed] = r.json()
    assert listed["id"] == group["id"]
    assert listed["admin"]["username"] == "admin"
    assert [m["username"] for m in listed["members"]] == ["admin", "bea"]
    assert mirror_violations(db) == []


def test_groups_are_listed_newest_first(client, make_user):
    admin = make_user("admin")
    first = create_group(client, admin, "First")
    second = create_group(client, admin, "Second")

    r = client.get("/api/v1/groups", headers=admin["headers"])
    assert [g["id"] for g in r.json()] == [second["id"], first["id"]]


def test_create_with_unknown_member_is_404(client, db, make_user):
    admin = make_user("admin")
    r = client.post(
        "/api/v1/groups",
        json={"name": "Trip", "member_ids": ["ghost"]},
        headers=admin["headers"],
    )
    assert r.status_code == 404
    assert r.json()["code"] == "not_found"
    assert db.rows("groups") == []


def test_group_detail_is_members_only(client, make_user):
    admin, outsider = make_user("admin"), make_user("outsider")
    group = create_group(client, admin)

    assert client.get(f"/api/v1/groups/{group['id']}", headers=admin["headers"]).status_code == 200
    r = client.get(f"/api/v1/groups/{group['id']}", headers=outsider["headers"])
    assert r.status_code == 403
    assert r.json()["code"] == "not_authorized"


def test_missing_group_is_404(client, make_user):
    user = make_user("user")
    r = client.get("/api/v1/groups/does-not-exist", headers=user["headers"])
    assert r.status_code == 404


def test_only_admin_can_update(client, make_user):
    admin, b = make_user("admin"), make_user("bea")
    group = create_group(client, admin, member_ids=[b["id"]])

    r = client.put(f"/api/v1/groups/{group['id']}", json={"name": "Hijack"}, headers=b["headers"])
    assert r.status_code == 403


def test_update_renames_and_replaces_members(client, db, make_user):
    admin, b, c = make_user("admin"), make_user("bea"), make_user("cal")
    group = create_group(client, admin, member_ids=[b["id"]])

    r = client.put(
        f"/api/v1/groups/{group['id']}",
        json={"name": "Renamed", "member_ids": [c["id"]]},
        headers=admin["headers"],
    )
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["name"] == "Renamed"
    assert body["members"] == [admin["id"], c["id"]]
    assert db.row("user_profiles", b["id"])["groups"] == []
    assert mirror_violations(db) == []


def test_update_with_empty_member_list_keeps_admin(client, db, make_user):
    admin, b = make_user("admin"), make_user("bea")
    group = create_group(client, admin, member_ids=[b["id"]])

    r = client.put(f"/api/v1/groups/{group['id']}", json={"member_ids": []}, headers=admin["headers"])
    assert r.json()["members"] == [admin["id"]]
    assert mirror_violations(db) == []


def test_add_members(client, db, make_user):
    admin, b, c = make_user("admin"), make_user("bea"), make_user("cal")
    group = create_group(client, admin, member_ids=[b["id"]])

    r = client.post(
        f"/api/v1/groups/{group['id']}/members",
        json={"member_ids": [c["id"]]},
        headers=admin["headers"],
    )
    assert r.status_code == 200
    assert r.json()["members"] == [admin["id"], b["id"], c["id"]]
    assert mirror_violations(db) == []


def test_delete_group(client, db, make_user):
    admin, b = make_user("admin"), make_user("bea")
    group = create_group(client, admin, member_ids=[b["id"]])

    assert client.delete(f"/api/v1/groups/{group['id']}", headers=b["headers"]).status_code == 403

    r = client.delete(f"/api/v1/groups/{group['id']}", headers=admin["headers"])
    assert r.status_code == 204
    assert db.rows("groups") == []
    assert db.row("user_profiles", admin["id"])["groups"] == []
    assert db.row("user_profiles", b["id"])["groups"] == []


def test_invite_link_can_be_redeemed_once(client, db, make_user, sms):
    admin, joiner = make_user("admin"), make_user("joiner")
    group = create_group(client, admin, "Ski week")

    r = client.post(
        f"/api/v1/groups/{group['id']}/invite",
        json={"phone_numbers": [joiner["phone_number"]]},
        headers=admin["headers"],
    )
    assert r.status_code == 200, r.text
    invite = r.json()
    assert invite["sent"] == [joiner["phone_number"]]
    assert invite["failed"] == []
    assert "/invite/" in invite["invite_link"]
    assert sms.sent[0]["body"] == f'Join "Ski week": {invite["invite_link"]}'

    token = invite["invite_link"].rsplit("/", 1)[1]
    r = client.post("/api/v1/groups/join", json={"token": token}, headers=joiner["headers"])
    assert r.status_code == 200
    assert r.json() == {"group_id": group["id"], "name": "Ski week"}
    assert mirror_violations(db) == []

    r = client.post("/api/v1/groups/join", json={"token": token}, headers=joiner["headers"])
    assert r.status_code == 409
    assert r.json()["code"] == "already_member"
    assert db.row("groups", group["id"])["members"].count(joiner["id"]) == 1


def test_expired_invite_is_rejected(client, clock, codec, make_user):
    admin, joiner = make_user("admin"), make_user("joiner")
    group = create_group(client, admin)
    token = codec.issue(group["id"], admin["id"])

    clock.advance(timedelta(days=8))
    r = client.post("/api/v1/groups/join", json={"token": token}, headers=joiner["headers"])
    assert r.status_code == 400
    assert r.json() == {"detail": "Invite link expired", "code": "token_expired"}


def test_invalid_invite_is_rejected(client, make_user):
    joiner = make_user("joiner")
    r = client.post("/api/v1/groups/join", json={"token": "garbage"}, headers=joiner["headers"])
    assert r.status_code == 400
    assert r.json()["code"] == "token_invalid"


def test_invite_for_deleted_group_is_404(client, codec, make_user):
    admin, joiner = make_user("admin"), make_user("joiner")
    group = create_group(client, admin)
    token = codec.issue(group["id"], admin["id"])
    client.delete(f"/api/v1/groups/{group['id']}", headers=admin["headers"])

    r = client.post("/api/v1/groups/join", json={"token": token}, headers=joiner["headers"])
    assert r.status_code == 404


def test_invite_sms_failures_are_reported_per_number(client, make_user):
    from app.main import app
    from app.modules.groups.sms import get_sms_sender

    failing = FakeSmsSender(failing={"+15550000002"})
    app.dependency_overrides[get_sms_sender] = lambda: failing
    admin = make_user("admin")
    group = create_group(client, admin)

    r = client.post(
        f"/api/v1/groups/{group['id']}/invite",
        json={"phone_numbers": ["+15550000001", "+15550000002", "+15550000003"]},
        headers=admin["headers"],
    )
    assert r.status_code == 200
    assert r.json()["sent"] == ["+15550000001", "+15550000003"]
    assert r.json()["failed"] == ["+15550000002"]


def test_only_admin_can_invite(client, make_user):
    admin, b = make_user("admin"), make_user("bea")
    group = create_group(client, admin, member_ids=[b["id"]])
    r = client.post(
        f"/api/v1/groups/{group['id']}/invite",
        json={"phone_numbers": ["+15550000009"]},
        headers=b["headers"],
    )
    assert r.status_code == 403


def test_update_with_unknown_member_changes_nothing(client, db, make_user):
    admin, b = make_user("admin"), make_user("bea")
    group = create_group(client, admin, member_ids=[b["id"]])

    r = client.put(
        f"/api/v1/groups/{group['id']}",
        json={"name": "Renamed", "member_ids": [b["id"], "ghost"]},
        headers=admin["headers"],
    )

    assert r.status_code == 404
    assert "ghost" in r.json()["detail"]
    stored = db.row("groups", group["id"])
    assert stored["name"] == "Trip"
    assert stored["members"] == [admin["id"], b["id"]]
    assert mirror_violations(db) == []


def test_invites_are_refused_without_a_configured_secret(client, db, make_user):
    from app.main import app
    from app.modules.groups.routes import get_invite_codec

    admin, joiner = make_user("admin"), make_user("joiner")
    group = create_group(client, admin)
    forged = InviteTokenCodec("change-me").issue(group["id"], admin["id"])
    app.dependency_overrides[get_invite_codec] = lambda: None

    r = client.post(
        f"/api/v1/groups/{group['id']}/invite",
        json={"phone_numbers": ["+15550000001"]},
        headers=admin["headers"],
    )
    assert r.status_code == 500
    assert r.json()["detail"] == "Invite tokens are not configured"

    r = client.post("/api/v1/groups/join", json={"token": forged}, headers=joiner["headers"])
    assert r.status_code == 500
    assert r.json()["detail"] == "Invite tokens are not configured"
    assert joiner["id"] not in db.row("groups", group["id"])["members"]
