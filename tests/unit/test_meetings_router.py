from __future__ import annotations

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from apps.api_gateway.deps import get_controller
from apps.api_gateway.routers.meetings import router as meetings_router
from party_meetings.auth.token_broker import MockTokenBroker
from party_meetings.common.config import get_settings
from party_meetings.connectors.meet.mock import MockMeetConnector
from party_meetings.domain.models import InternalIdentity
from party_meetings.services.meeting_session_service import MeetingSessionController
from party_meetings.storage.episodes import EpisodeStore, PartyOperationLock
from party_meetings.storage.memory import InMemoryPersistenceGateway


class _FakeRedis:
    def __init__(self) -> None:
        self.kv: dict[str, str] = {}
        self.ttl: dict[str, int] = {}

    def set(self, key: str, value: str, nx: bool = False, ex: int | None = None) -> bool | None:
        _ = ex
        if nx and key in self.kv:
            return None
        self.kv[key] = value
        return True

    def get(self, key: str) -> str | None:
        return self.kv.get(key)

    def delete(self, key: str) -> int:
        return 1 if self.kv.pop(key, None) is not None else 0

    def expire(self, key: str, ttl: int) -> bool:
        if key not in self.kv:
            return False
        self.ttl[key] = ttl
        return True


@pytest.fixture()
def env():
    fake = _FakeRedis()
    provider = MockMeetConnector()
    gateway = InMemoryPersistenceGateway()
    gateway.add_member("p-1", InternalIdentity(party_member_id="org", username="captain"))
    controller = MeetingSessionController(
        provider=provider,
        token_broker=MockTokenBroker(),
        gateway=gateway,
        roster=gateway,
        episodes=EpisodeStore(redis_factory=lambda: fake),
        lock=PartyOperationLock(redis_factory=lambda: fake),
    )
    app = FastAPI()
    app.include_router(meetings_router, prefix="/v1")
    app.dependency_overrides[get_controller] = lambda: controller

    s = get_settings()
    snapshot = {"auth_mode": s.auth_mode, "api_keys": s.api_keys}
    try:
        s.auth_mode = "none"
        yield TestClient(app), controller, provider
    finally:
        s.auth_mode = snapshot["auth_mode"]
        s.api_keys = snapshot["api_keys"]


def test_create_list_active_and_details(env) -> None:
    client, _controller, _provider = env

    resp = client.post("/v1/parties/p-1/meetings", json={"organizer_id": "org", "title": "Physics"})
    assert resp.status_code == 200
    meeting = resp.json()["meeting"]
    assert meeting["title"] == "Physics"
    assert meeting["status"] == "Active"
    assert meeting["join_link"].startswith("https://meet.google.com/")

    listed = client.get("/v1/parties/p-1/meetings").json()["meetings"]
    assert [m["id"] for m in listed] == [meeting["id"]]

    active = client.get("/v1/parties/p-1/meetings/active").json()["active"]
    assert active["id"] == meeting["id"]

    details = client.get(f"/v1/meetings/{meeting['id']}").json()
    assert details["meeting"]["id"] == meeting["id"]
    assert details["participants"] == []


def test_end_returns_successor_and_steps(env) -> None:
    client, _controller, _provider = env
    meeting = client.post("/v1/parties/p-1/meetings", json={"organizer_id": "org"}).json()["meeting"]

    resp = client.post(f"/v1/parties/p-1/meetings/{meeting['id']}/end", json={"organizer_id": "org"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["ended"]["actual_end"] is not None
    assert body["successor"]["id"] != meeting["id"]
    assert {s["step"]: s["outcome"] for s in body["steps"]}["resolve"] == "ok"

    active = client.get("/v1/parties/p-1/meetings/active").json()["active"]
    assert active["id"] == body["successor"]["id"]


def test_end_without_conference_record_is_422(env) -> None:
    client, _controller, provider = env
    meeting = client.post("/v1/parties/p-1/meetings", json={"organizer_id": "org"}).json()["meeting"]
    provider.records.clear()

    resp = client.post(f"/v1/parties/p-1/meetings/{meeting['id']}/end", json={})
    assert resp.status_code == 422
    assert resp.json()["detail"]["code"] == "session_finalize_failed"


def test_end_conflict_and_unknown_meeting(env) -> None:
    client, controller, _provider = env
    meeting = client.post("/v1/parties/p-1/meetings", json={"organizer_id": "org"}).json()["meeting"]

    with controller.lock.hold("p-1", operation="end"):
        resp = client.post(f"/v1/parties/p-1/meetings/{meeting['id']}/end", json={})
    assert resp.status_code == 409
    assert resp.json()["detail"]["code"] == "conflict"

    assert client.post("/v1/parties/p-1/meetings/nope/end", json={}).status_code == 404
    assert client.get("/v1/meetings/nope").status_code == 404


def test_repeated_end_is_conflict(env) -> None:
    client, _controller, _provider = env
    meeting = client.post("/v1/parties/p-1/meetings", json={"organizer_id": "org"}).json()["meeting"]
    url = f"/v1/parties/p-1/meetings/{meeting['id']}/end"
    first = client.post(url, json={}).json()

    resp = client.post(url, json={})
    assert resp.status_code == 409
    assert resp.json()["detail"]["details"]["meeting_id"] == meeting["id"]

    active = client.get("/v1/parties/p-1/meetings/active").json()["active"]
    assert active["id"] == first["successor"]["id"]
    assert len(client.get("/v1/parties/p-1/meetings").json()["meetings"]) == 2


def test_end_by_other_member_is_forbidden(env) -> None:
    client, _controller, _provider = env
    meeting = client.post("/v1/parties/p-1/meetings", json={"organizer_id": "org"}).json()["meeting"]
    resp = client.post(f"/v1/parties/p-1/meetings/{meeting['id']}/end", json={"organizer_id": "u-x"})
    assert resp.status_code == 403


def test_create_window_validation(env) -> None:
    client, _controller, _provider = env
    resp = client.post(
        "/v1/parties/p-1/meetings",
        json={"organizer_id": "org", "scheduled_start": "2026-03-02T17:00:00Z"},
    )
    assert resp.status_code == 422


def test_api_key_required(env) -> None:
    client, _controller, _provider = env
    s = get_settings()
    s.auth_mode = "api_key"
    s.api_keys = "k-1"

    assert client.get("/v1/parties/p-1/meetings").status_code == 401
    ok = client.get("/v1/parties/p-1/meetings", headers={"X-API-Key": "k-1"})
    assert ok.status_code == 200
