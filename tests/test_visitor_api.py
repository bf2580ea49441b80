from __future__ import annotations

import json

import pytest
import requests
from fastapi.testclient import TestClient

from funnel.adapters.upstream_client import UpstreamClient
from funnel.app.dependencies import get_visitors_client
from funnel.app.main import app


class UpstreamReply:
    def __init__(self, status_code: int, body: bytes = b"", content_type: str | None = "application/json") -> None:
        self.status_code = status_code
        self.content = body
        self.headers = {"Content-Type": content_type} if content_type else {}


class RecordingSession:
    def __init__(self, reply: UpstreamReply | None = None, error: Exception | None = None) -> None:
        self.reply = reply
        self.error = error
        self.calls = []

    def request(self, method, url, headers=None, data=None):
        self.calls.append({"method": method, "url": url, "headers": headers or {}, "body": data})
        if self.error is not None:
            raise self.error
        return self.reply


@pytest.fixture()
def visitors_api():
    def _make(session: RecordingSession, token: str = "visitor-token") -> TestClient:
        upstream = UpstreamClient(base_url="http://visitors.internal", token=token, session=session)
        app.dependency_overrides[get_visitors_client] = lambda: upstream
        return TestClient(app)

    try:
        yield _make
    finally:
        app.dependency_overrides.pop(get_visitors_client, None)


def test_list_requires_token_before_calling_upstream(visitors_api):
    session = RecordingSession(UpstreamReply(200, b"[]"))
    client = visitors_api(session, token="")

    response = client.get("/api/visitors")

    assert response.status_code == 500
    assert "VISITORS_API_TOKEN" in response.json()["error"]
    assert session.calls == []


def test_list_forwards_query_string(visitors_api):
    visitors = [{"id": "v1", "fullName": "Casey"}]
    session = RecordingSession(UpstreamReply(200, json.dumps(visitors).encode()))
    client = visitors_api(session)

    response = client.get("/api/visitors?page=2&limit=10")

    assert response.status_code == 200
    assert response.json() == visitors
    call = session.calls[0]
    assert call["url"] == "http://visitors.internal/api/visitor?page=2&limit=10"
    assert call["headers"]["Authorization"] == "Bearer visitor-token"
    assert call["headers"]["Accept"] == "application/json"


def test_list_relays_upstream_error(visitors_api):
    session = RecordingSession(UpstreamReply(403, b"forbidden", content_type="text/plain"))
    client = visitors_api(session)

    response = client.get("/api/visitors")

    assert response.status_code == 403
    assert response.text == "forbidden"
    assert response.headers["content-type"].startswith("text/plain")


def test_list_empty_upstream_error_gets_generic_body(visitors_api):
    session = RecordingSession(UpstreamReply(404, b""))
    client = visitors_api(session)

    response = client.get("/api/visitors")

    assert response.status_code == 404
    assert response.json() == {"error": "Upstream error"}


def test_list_transport_failure_is_bad_gateway(visitors_api):
    session = RecordingSession(error=requests.ConnectionError("down"))
    client = visitors_api(session)

    response = client.get("/api/visitors")

    assert response.status_code == 502
    assert response.json() == {"error": "Failed to fetch visitors from upstream API"}


def test_create_rejects_invalid_json(visitors_api):
    session = RecordingSession(UpstreamReply(201, b"{}"))
    client = visitors_api(session)

    response = client.post("/api/visitors", content=b"oops", headers={"Content-Type": "application/json"})

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid JSON body"}
    assert session.calls == []


def test_create_relays_status_and_body(visitors_api):
    session = RecordingSession(UpstreamReply(201, b'{"success": true, "id": "v9"}'))
    client = visitors_api(session, token="")

    response = client.post("/api/visitors", json={"fullName": "Casey", "businessEmail": "casey@example.com"})

    assert response.status_code == 201
    assert response.json() == {"success": True, "id": "v9"}
    call = session.calls[0]
    assert json.loads(call["body"]) == {"fullName": "Casey", "businessEmail": "casey@example.com"}
    assert "Authorization" not in call["headers"]


def test_create_transport_failure_is_bad_gateway(visitors_api):
    session = RecordingSession(error=requests.ConnectionError("down"))
    client = visitors_api(session)

    response = client.post("/api/visitors", json={"fullName": "Casey"})

    assert response.status_code == 502
    assert response.json() == {"error": "Failed to register visitor with upstream API"}


def test_update_forwards_to_visitor_path(visitors_api):
    session = RecordingSession(UpstreamReply(200, b'{"updated": true}'))
    client = visitors_api(session)

    response = client.put("/api/visitors/v42", json={"status": "client"})

    assert response.status_code == 200
    assert response.json() == {"updated": True}
    assert session.calls[0]["method"] == "PUT"
    assert session.calls[0]["url"] == "http://visitors.internal/api/visitor/v42"


def test_update_non_json_upstream_body_becomes_empty_object(visitors_api):
    session = RecordingSession(UpstreamReply(404, b"Not Found", content_type="text/html"))
    client = visitors_api(session)

    response = client.put("/api/visitors/missing", json={"status": "client"})

    assert response.status_code == 404
    assert response.json() == {}


def test_update_failure_is_server_error(visitors_api):
    session = RecordingSession(error=requests.ConnectionError("reset by peer"))
    client = visitors_api(session)

    response = client.put("/api/visitors/v42", json={"status": "client"})
    data = response.json()

    assert response.status_code == 500
    assert data["success"] is False
    assert data["message"] == "Failed to update visitor"
    assert "reset by peer" in data["error"]


def test_update_invalid_json_is_server_error(visitors_api):
    session = RecordingSession(UpstreamReply(200, b"{}"))
    client = visitors_api(session)

    response = client.put("/api/visitors/v42", content=b"{", headers={"Content-Type": "application/json"})

    assert response.status_code == 500
    assert response.json()["message"] == "Failed to update visitor"
    assert session.calls == []


def test_delete_relays_upstream(visitors_api):
    session = RecordingSession(UpstreamReply(200, b'{"deleted": true}'))
    client = visitors_api(session)

    response = client.delete("/api/visitors/v42")

    assert response.status_code == 200
    assert response.json() == {"deleted": True}
    call = session.calls[0]
    assert call["method"] == "DELETE"
    assert call["body"] is None


def test_delete_failure_is_server_error(visitors_api):
    session = RecordingSession(error=requests.ConnectionError("down"))
    client = visitors_api(session)

    response = client.delete("/api/visitors/v42")

    assert response.status_code == 500
    assert response.json()["message"] == "Failed to delete visitor"
