from __future__ import annotations

import pytest

from app.main import app
from app.modules.notifications.push import get_push_sender
from app.core.errors import NotFound
from app.modules.posts.service import PostService
from tests.fakes import FakePushSender


@pytest.fixture
def beach(client, make_user):
    a = make_user("alice", fcm_token="tok-a")
    b = make_user("bob", fcm_token="tok-b")
    c = make_user("carol")
    r = client.post(
        "/api/v1/groups",
        json={"name": "Beach", "member_ids": [b["id"], c["id"]]},
        headers=a["headers"],
    )
    assert r.status_code == 201
    return r.json(), a, b, c


def upload(client, user, group_id, caption="Sunset", content_type="image/jpeg"):
    return client.post(
        "/api/v1/posts",
        data={"group_id": group_id, "caption": caption},
        files={"media": ("photo", b"\xff\xd8\xff fake image", content_type)},
        headers=user["headers"],
    )


def test_create_post_uploads_media_and_notifies_group(client, db, push, storage, beach):
    group, a, b, c = beach

    r = upload(client, a, group["id"])

    assert r.status_code == 201, r.text
    post = r.json()
    assert post["group_id"] == group["id"]
    assert post["caption"] == "Sunset"
    assert post["media_type"] == "image"
    assert post["user"]["username"] == "alice"
    assert post["media_url"].startswith("https://media.example.test/posts/")

    [uploaded] = storage.uploads
    assert uploaded["key"].startswith(f"posts/{a['id']}/")
    assert uploaded["key"].endswith(".jpeg")

    rows = [n for n in db.rows("notifications") if n["type"] == "new_post"]
    assert len(rows) == 2
    assert {n["user_id"] for n in rows} == {b["id"], c["id"]}
    assert all(n["from_user_id"] == a["id"] for n in rows)
    assert push.multicasts[0]["tokens"] == ["tok-b"]


def test_push_failure_does_not_change_post_response(client, db, beach):
    group, a, b, c = beach
    app.dependency_overrides[get_push_sender] = lambda: FakePushSender(fail=True)

    r = upload(client, a, group["id"])

    assert r.status_code == 201
    assert len(db.rows("posts")) == 1
    assert len([n for n in db.rows("notifications") if n["type"] == "new_post"]) == 2


def test_notification_write_failure_does_not_change_post_response(client, db, beach):
    group, a, b, c = beach
    db.fail_on("notifications", "insert")

    r = upload(client, a, group["id"])

    assert r.status_code == 201
    assert db.rows("notifications") == []


def test_video_uploads_are_marked_as_video(client, beach):
    group, a, b, c = beach
    r = upload(client, a, group["id"], content_type="video/mp4")
    assert r.status_code == 201
    assert r.json()["media_type"] == "video"


def test_post_requires_media(client, beach):
    group, a, b, c = beach
    r = client.post(
        "/api/v1/posts",
        data={"group_id": group["id"], "caption": "no file"},
        headers=a["headers"],
    )
    assert r.status_code == 400
    assert r.json() == {"detail": "No file uploaded", "code": "validation_error"}


def test_post_requires_group_id(client, beach):
    group, a, b, c = beach
    r = upload(client, a, "")
    assert r.status_code == 400
    assert r.json()["detail"] == "Missing groupId"


def test_post_rejects_other_media_types(client, beach):
    group, a, b, c = beach
    r = upload(client, a, group["id"], content_type="application/pdf")
    assert r.status_code == 400


def test_non_member_cannot_post(client, storage, make_user, beach):
    group, a, b, c = beach
    outsider = make_user("outsider")

    r = upload(client, outsider, group["id"])

    assert r.status_code == 403
    assert storage.uploads == []


def test_list_posts_newest_first(client, beach):
    group, a, b, c = beach
    first = upload(client, a, group["id"], caption="first").json()
    second = upload(client, b, group["id"], caption="second").json()

    r = client.get("/api/v1/posts", params={"group_id": group["id"]}, headers=c["headers"])
    assert r.status_code == 200
    assert [p["id"] for p in r.json()] == [second["id"], first["id"]]

    r = client.get("/api/v1/posts", params={"limit": 1, "offset": 1}, headers=c["headers"])
    assert [p["id"] for p in r.json()] == [first["id"]]


def test_list_posts_of_foreign_group_is_forbidden(client, make_user, beach):
    group, a, b, c = beach
    outsider = make_user("outsider")
    r = client.get("/api/v1/posts", params={"group_id": group["id"]}, headers=outsider["headers"])
    assert r.status_code == 403


def test_like_toggles(client, beach):
    group, a, b, c = beach
    post = upload(client, a, group["id"]).json()

    r = client.post(f"/api/v1/posts/{post['id']}/like", headers=b["headers"])
    assert r.json() == {"liked": True, "likes": [b["id"]]}

    r = client.post(f"/api/v1/posts/{post['id']}/like", headers=b["headers"])
    assert r.json() == {"liked": False, "likes": []}


def test_like_missing_post_is_404(client, beach):
    group, a, b, c = beach
    assert client.post("/api/v1/posts/nope/like", headers=a["headers"]).status_code == 404


def test_comment_notifies_author(client, db, push, beach):
    group, a, b, c = beach
    post = upload(client, a, group["id"]).json()
    text = "w" * 150

    r = client.post(f"/api/v1/posts/{post['id']}/comments", json={"text": text}, headers=b["headers"])

    assert r.status_code == 201
    comment = r.json()
    assert comment["text"] == text
    assert comment["user"]["username"] == "bob"

    [row] = [n for n in db.rows("notifications") if n["type"] == "comment"]
    assert row["user_id"] == a["id"]
    assert row["message"] == "w" * 100 + "..."
    assert push.singles[0]["body"] == "bob: " + "w" * 100 + "..."

    stored = db.row("posts", post["id"])
    assert [c_["text"] for c_ in stored["comments"]] == [text]


def test_self_comment_creates_no_notification(client, db, beach):
    group, a, b, c = beach
    post = upload(client, a, group["id"]).json()

    r = client.post(f"/api/v1/posts/{post['id']}/comments", json={"text": "mine"}, headers=a["headers"])

    assert r.status_code == 201
    assert [n for n in db.rows("notifications") if n["type"] == "comment"] == []


def test_empty_comment_is_rejected(client, beach):
    group, a, b, c = beach
    post = upload(client, a, group["id"]).json()
    r = client.post(f"/api/v1/posts/{post['id']}/comments", json={"text": "   "}, headers=b["headers"])
    assert r.status_code == 400
    assert r.json()["detail"] == "Comment text missing"


def test_comments_from_stale_snapshots_are_both_kept(db, beach, client):
    group, a, b, c = beach
    post_id = upload(client, a, group["id"]).json()["id"]
    service = PostService(db)
    first_view = db.row("posts", post_id)
    second_view = db.row("posts", post_id)

    service.add_comment(first_view, b["id"], "first")
    service.add_comment(second_view, c["id"], "second")

    stored = db.row("posts", post_id)
    assert [(c_["user_id"], c_["text"]) for c_ in stored["comments"]] == [
        (b["id"], "first"), (c["id"], "second"),
    ]


def test_likes_from_stale_snapshots_are_both_kept(db, beach, client):
    group, a, b, c = beach
    post_id = upload(client, a, group["id"]).json()["id"]
    service = PostService(db)
    first_view = db.row("posts", post_id)
    second_view = db.row("posts", post_id)

    assert service.toggle_like(first_view, b["id"]).liked is True
    result = service.toggle_like(second_view, c["id"])

    assert result.liked is True
    assert result.likes == [b["id"], c["id"]]
    assert db.row("posts", post_id)["likes"] == [b["id"], c["id"]]

    # An unlike is decided by the stored row even when the snapshot predates the like
    assert service.toggle_like(first_view, b["id"]).liked is False
    assert db.row("posts", post_id)["likes"] == [c["id"]]


def test_comment_on_deleted_post_is_404(db, beach, client):
    group, a, b, c = beach
    post = db.row("posts", upload(client, a, group["id"]).json()["id"])
    db.tables["posts"].clear()

    with pytest.raises(NotFound):
        PostService(db).add_comment(post, b["id"], "too late")
