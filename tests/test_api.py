import uuid

import pytest
from fastapi.testclient import TestClient

from podscription.core.pipeline import SessionManager, get_session_manager
from podscription.main import app
from podscription.providers.openai_chat import BackendError


@pytest.fixture
def client(manager):
    app.dependency_overrides[get_session_manager] = lambda: manager
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "healthy", "service": "podscription-api", "version": "1.0.0"}


def test_create_list_and_get_sessions(client):
    r = client.post("/api/sessions")
    assert r.status_code == 201
    first = r.json()
    assert first["name"] == "Session 1"
    assert first["messages"] == []
    assert {"id", "createdAt", "updatedAt"} <= set(first)

    r = client.post("/api/sessions", json={"name": "prod outage"})
    assert r.status_code == 201
    assert r.json()["name"] == "prod outage"

    r = client.get("/api/sessions")
    assert r.status_code == 200
    names = sorted(s["name"] for s in r.json()["sessions"])
    assert names == ["Session 1", "prod outage"]

    r = client.get(f"/api/sessions/{first['id']}")
    assert r.status_code == 200
    assert r.json()["id"] == first["id"]


def test_get_session_rejects_malformed_id(client):
    r = client.get("/api/sessions/not-a-uuid")
    assert r.status_code == 400
    assert r.json()["error"] == "INVALID_SESSION_ID"


def test_get_session_unknown_id(client):
    r = client.get(f"/api/sessions/{uuid.uuid4()}")
    assert r.status_code == 404
    assert r.json() == {"error": "SESSION_NOT_FOUND", "message": "Chat session not found"}


def test_chat_turn_creates_session_and_returns_reply(client):
    r = client.post("/api/chat", json={"content": "pods can't resolve dns"})
    assert r.status_code == 200
    body = r.json()

    session, message = body["session"], body["message"]
    assert len(session["messages"]) == 2
    assert session["messages"][1]["id"] == message["id"]
    assert message["role"] == "assistant"
    assert message["intent"] == {
        "category": "networking",
        "confidence": 0.9,
        "symptoms": ["dns failure", "timeout"],
    }
    assert message["prescription"]["followUp"] == "Watch CoreDNS restarts for a day."
    assert message["prescription"]["commands"][0].startswith("kubectl")

    r = client.post("/api/chat", json={"sessionId": session["id"], "content": "still broken"})
    assert r.status_code == 200
    assert len(r.json()["session"]["messages"]) == 4


def test_chat_blank_content_is_invalid_request(client):
    r = client.post("/api/chat", json={"content": "   "})
    assert r.status_code == 400
    assert r.json()["error"] == "INVALID_REQUEST"


@pytest.mark.parametrize(
    "kwargs",
    [
        {"json": {"sessionId": "abc"}},
        {"json": {"content": 42}},
        {"content": b"{not json", "headers": {"Content-Type": "application/json"}},
    ],
)
def test_chat_bad_payload(client, kwargs):
    r = client.post("/api/chat", **kwargs)
    assert r.status_code == 400
    assert r.json() == {"error": "INVALID_PAYLOAD", "message": "Invalid request payload"}


def test_chat_unknown_session(client):
    r = client.post("/api/chat", json={"sessionId": str(uuid.uuid4()), "content": "hi"})
    assert r.status_code == 404
    assert r.json()["error"] == "SESSION_NOT_FOUND"


def test_chat_accepts_upper_case_session_id(client):
    session = client.post("/api/sessions").json()
    upper = session["id"].upper()

    r = client.get(f"/api/sessions/{upper}")
    assert r.status_code == 200
    assert r.json()["id"] == session["id"]

    r = client.post("/api/chat", json={"sessionId": upper, "content": "dns"})
    assert r.status_code == 200
    assert r.json()["session"]["id"] == session["id"]


def test_chat_malformed_session_id_is_invalid_payload(client, store):
    r = client.post("/api/chat", json={"sessionId": "not-a-uuid", "content": "dns"})
    assert r.status_code == 400
    assert r.json() == {"error": "INVALID_PAYLOAD", "message": "Invalid request payload"}
    assert store.count_sessions() == 0


def test_chat_reply_without_commands_omits_empty_fields(client, backend):
    backend.diagnosis_reply = "## Diagnosis: Healthy Cluster\nAll pods are fine."

    r = client.post("/api/chat", json={"content": "is my cluster ok?"})
    assert r.status_code == 200
    prescription = r.json()["message"]["prescription"]
    assert prescription["diagnosis"] == "Healthy Cluster"
    assert "commands" not in prescription
    assert "followUp" not in prescription


def test_chat_diagnosis_failure_is_500(client, backend, store):
    backend.diagnosis_reply = BackendError("HTTP 500")
    session = store.create_session()

    r = client.post("/api/chat", json={"sessionId": session.id, "content": "ingress down"})
    assert r.status_code == 500
    assert r.json() == {"error": "PROCESSING_FAILED", "message": "Failed to process message"}
    assert len(store.get_session(session.id).messages) == 1


def test_session_creation_failure_is_500(backend, test_settings):
    class BrokenStore:
        def create_session(self, name=None):
            raise OSError("disk full")

    broken = SessionManager(store=BrokenStore(), backend=backend, settings=test_settings)
    app.dependency_overrides[get_session_manager] = lambda: broken
    try:
        r = TestClient(app).post("/api/sessions", json={"name": "x"})
    finally:
        app.dependency_overrides.clear()

    assert r.status_code == 500
    assert r.json()["error"] == "SESSION_CREATION_FAILED"
