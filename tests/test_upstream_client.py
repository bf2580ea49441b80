from __future__ import annotations

import pytest
import requests

from funnel.adapters.upstream_client import UpstreamClient, UpstreamResponse
from funnel.client.storage import PAYMENT_SESSION_KEY, VISITOR_DATA_KEY, LocalStore, StorageRegistry


class EchoSession:
    def __init__(self, headers=None, error: Exception | None = None) -> None:
        self.response_headers = headers if headers is not None else {}
        self.error = error
        self.calls = []

    def request(self, method, url, headers=None, data=None):
        self.calls.append((method, url, headers, data))
        if self.error is not None:
            raise self.error
        return type(
            "Reply",
            (),
            {"status_code": 204, "content": b"", "headers": self.response_headers},
        )()


def test_build_url_strips_trailing_slash_and_appends_query():
    client = UpstreamClient(base_url="http://backend:8000/", session=EchoSession())

    assert client.build_url("/api/visitor") == "http://backend:8000/api/visitor"
    assert client.build_url("/api/visitor", "q=ann") == "http://backend:8000/api/visitor?q=ann"


def test_forward_defaults_content_type():
    session = EchoSession()
    client = UpstreamClient(base_url="http://backend", token="abc", session=session)

    response = client.forward("DELETE", "/api/visitor/1")

    assert response.status_code == 204
    assert response.content_type == "application/json"
    method, url, headers, data = session.calls[0]
    assert headers == {"Authorization": "Bearer abc"}
    assert data is None


def test_forward_propagates_transport_errors():
    client = UpstreamClient(base_url="http://backend", session=EchoSession(error=requests.ConnectionError("x")))

    with pytest.raises(requests.RequestException):
        client.forward("GET", "/api/visitor")


def test_upstream_response_helpers():
    response = UpstreamResponse(status_code=302, body=b'{"a": 1}')

    assert response.ok is False
    assert response.json() == {"a": 1}
    with pytest.raises(ValueError):
        UpstreamResponse(status_code=200, body=b"<html>").json()


def test_local_store_ignores_corrupt_values():
    backing = {"visitorData": "{oops"}
    store = LocalStore(backing)

    assert store.get_json("visitorData") is None
    store.set_json("paymentSession", {"amount": 1350})
    assert backing["paymentSession"] == '{"amount": 1350}'
    store.remove("paymentSession")
    assert "paymentSession" not in backing


def test_storage_registry_reopens_bucket_for_returning_checkout():
    registry = StorageRegistry()
    key, store = registry.open()
    store.set_json(VISITOR_DATA_KEY, {"id": "v-1", "fullName": "Casey"})
    store.set_json(PAYMENT_SESSION_KEY, {"sessionId": "cs_live_42", "amount": 1350})
    registry.open()

    returning = registry.find_by_checkout("cs_live_42")
    _, reopened = registry.open(returning)

    assert returning == key
    assert reopened.get_json(VISITOR_DATA_KEY)["fullName"] == "Casey"
    assert registry.find_by_checkout("cs_unknown") is None
    assert registry.find_by_checkout(None) is None


def test_storage_registry_discard_forgets_bucket():
    registry = StorageRegistry()
    key, store = registry.open()
    store.set_json(PAYMENT_SESSION_KEY, {"sessionId": "cs_1"})

    registry.discard(key)

    assert registry.find_by_checkout("cs_1") is None
