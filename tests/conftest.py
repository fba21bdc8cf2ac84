from __future__ import annotations

from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from app.core.dependencies import get_identity_provider
from app.database.supabase_client import get_service_supabase, get_supabase
from app.main import app
from app.modules.groups.invites import InviteTokenCodec
from app.modules.groups.routes import get_invite_codec
from app.modules.groups.sms import get_sms_sender
from app.modules.notifications.push import get_push_sender
from app.modules.posts.storage import get_media_storage, get_optional_media_storage
from tests.fakes import (
    FakeIdentityProvider,
    FakeMediaStorage,
    FakePushSender,
    FakeSmsSender,
    FakeSupabase,
    MutableClock,
)

TEST_INVITE_SECRET = "unit-test-invite-secret"


@pytest.fixture
def db():
    return FakeSupabase()


@pytest.fixture
def identity():
    return FakeIdentityProvider()


@pytest.fixture
def push():
    return FakePushSender()


@pytest.fixture
def storage():
    return FakeMediaStorage()


@pytest.fixture
def sms():
    return FakeSmsSender()


@pytest.fixture
def clock():
    return MutableClock(datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def codec(clock):
    return InviteTokenCodec(TEST_INVITE_SECRET, clock=clock)


@pytest.fixture
def client(db, identity, push, storage, sms, codec):
    app.dependency_overrides[get_supabase] = lambda: db
    app.dependency_overrides[get_service_supabase] = lambda: db
    app.dependency_overrides[get_identity_provider] = lambda: identity
    app.dependency_overrides[get_push_sender] = lambda: push
    app.dependency_overrides[get_media_storage] = lambda: storage
    app.dependency_overrides[get_optional_media_storage] = lambda: storage
    app.dependency_overrides[get_sms_sender] = lambda: sms
    app.dependency_overrides[get_invite_codec] = lambda: codec
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db, identity):
    """Insert a profile and register a bearer token for it; the row gets a `headers` key."""
    def _make(username: str, phone_number: str = None, fcm_token: str = None) -> dict:
        phone_number = phone_number or f"+1555{len(db.rows('user_profiles')):07d}"
        row = db.table("user_profiles").insert({
            "firebase_uid": f"uid-{username}",
            "username": username,
            "phone_number": phone_number,
            "fcm_token": fcm_token,
            "groups": [],
        }).execute().data[0]
        token = f"id-token-{username}"
        identity.register(token, uid=row["firebase_uid"], phone_number=phone_number)
        row["headers"] = {"Authorization": f"Bearer {token}"}
        return row
    return _make
