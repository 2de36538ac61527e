import pytest
from fastapi.testclient import TestClient

from thinkguard.config import settings
from thinkguard.services.thinking_validator import SYNTHETIC_THINKING_ID_PREFIX


@pytest.fixture()
def client():
    from thinkguard.main import app

    return TestClient(app)


def payload(model_id, assistant_parts):
    return {
        "messages": [
            {
                "info": {"role": "user", "id": "msg_1", "sessionID": "ses_1", "modelID": model_id},
                "parts": [{"type": "text", "text": "read the file"}],
            },
            {
                "info": {"role": "assistant", "id": "msg_2", "sessionID": "ses_1", "time": {"created": 1}},
                "parts": assistant_parts,
            },
        ]
    }


TOOL_PART = {"type": "tool_use", "id": "call_1", "name": "read", "input": {"path": "a.py"}}


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_transform_prepends_synthetic_thinking(client):
    resp = client.post("/api/messages/transform", json=payload("claude-opus-4-thinking", [TOOL_PART]))

    assert resp.status_code == 200
    body = resp.json()
    assert body["fixed_count"] == 1
    assert body["model_id"] == "claude-opus-4-thinking"

    assistant = body["messages"][1]
    assert assistant["info"]["time"] == {"created": 1}
    assert assistant["parts"] == [
        {
            "type": "thinking",
            "id": SYNTHETIC_THINKING_ID_PREFIX,
            "sessionID": "ses_1",
            "messageID": "msg_2",
            "thinking": settings.DEFAULT_THINKING_CONTENT,
            "synthetic": True,
        },
        TOOL_PART,
    ]


def test_transform_leaves_non_enforcing_payload_unchanged(client):
    request = payload("gpt-4", [TOOL_PART])

    resp = client.post("/api/messages/transform", json=request)

    assert resp.status_code == 200
    assert resp.json()["fixed_count"] == 0
    assert resp.json()["messages"] == request["messages"]


def test_transform_is_idempotent(client):
    first = client.post("/api/messages/transform", json=payload("claude-3-7-sonnet", [TOOL_PART])).json()

    second = client.post("/api/messages/transform", json={"messages": first["messages"]}).json()

    assert second["fixed_count"] == 0
    assert second["messages"] == first["messages"]


def test_transform_rejects_body_without_message_list(client):
    resp = client.post("/api/messages/transform", json={"messages": "not a list"})
    assert resp.status_code == 422


def test_validate_reports_results(client):
    request = payload("claude-sonnet-4", [TOOL_PART])

    resp = client.post("/api/messages/validate", json=request)

    assert resp.status_code == 200
    body = resp.json()
    assert body["stats"] == {"total": 2, "valid": 1, "fixed": 1, "issues": 1}
    assert body["results"][1]["fixed"] is True
    assert body["results"][1]["issue"] == "Assistant message has content but no thinking block"
    assert body["messages"][1]["parts"][0]["synthetic"] is True


def test_validate_model_override(client):
    request = payload("claude-sonnet-4", [TOOL_PART])
    request["model_id"] = "gpt-4"

    body = client.post("/api/messages/validate", json=request).json()

    assert body["stats"]["fixed"] == 0
    assert body["messages"][1]["parts"] == [TOOL_PART]


@pytest.mark.parametrize(
    "model_id,expected",
    [("claude-opus-4-thinking", True), ("o3-high", True), ("gpt-4", False)],
)
def test_model_capability(client, model_id, expected):
    resp = client.get(f"/api/models/{model_id}/thinking")

    assert resp.status_code == 200
    assert resp.json() == {"model_id": model_id, "extended_thinking": expected}


@pytest.mark.parametrize(
    "broken",
    [
        {"info": {"role": "assistant", "id": "msg_x"}, "parts": [{"text": "no type"}]},
        {"info": {"role": "tool", "id": "msg_x"}, "parts": [TOOL_PART]},
        {"parts": [TOOL_PART]},
        "not a message",
    ],
)
def test_transform_passes_malformed_message_through(client, broken):
    request = payload("claude-opus-4-thinking", [TOOL_PART])
    request["messages"].insert(1, broken)

    resp = client.post("/api/messages/transform", json=request)

    assert resp.status_code == 200
    body = resp.json()
    assert body["fixed_count"] == 1
    assert body["model_id"] == "claude-opus-4-thinking"
    assert body["messages"][1] == broken
    assert body["messages"][2]["parts"][0]["synthetic"] is True
    assert body["messages"][2]["parts"][1:] == [TOOL_PART]


def test_transform_returns_unrepaired_messages_verbatim(client):
    parts = [
        {"type": "thinking", "thinking": "x", "synthetic": "yes"},
        {"type": "text", "text": "t", "synthetic": 1},
        {"type": "reasoning", "text": "r", "synthetic": "true"},
        TOOL_PART,
    ]
    request = payload("gpt-4", parts)

    resp = client.post("/api/messages/transform", json=request)

    assert resp.status_code == 200
    assert resp.json()["messages"] == request["messages"]


def test_transform_repair_keeps_original_parts_verbatim(client):
    text_part = {"type": "text", "text": "a", "synthetic": "true", "time": {"start": 3}}
    request = payload("claude-sonnet-4", [text_part, TOOL_PART])

    body = client.post("/api/messages/transform", json=request).json()

    assistant = body["messages"][1]
    assert assistant["parts"][1:] == [text_part, TOOL_PART]
    assert assistant["info"] == request["messages"][1]["info"]
    assert body["messages"][0] == request["messages"][0]


def test_validate_reports_malformed_message(client):
    request = payload("claude-opus-4-thinking", [TOOL_PART])
    request["messages"].insert(1, {"info": {"role": "tool"}, "parts": []})

    resp = client.post("/api/messages/validate", json=request)

    assert resp.status_code == 200
    body = resp.json()
    assert body["results"][1]["issue"] == "Malformed message skipped"
    assert body["stats"] == {"total": 3, "valid": 1, "fixed": 1, "issues": 2}
    assert body["messages"][1] == {"info": {"role": "tool"}, "parts": []}
