from __future__ import annotations

import json
import logging
from typing import Any, Optional

import requests

from funnel.adapters.upstream_client import UpstreamClient, UpstreamResponse
from funnel.services.relay import RelayResult, parse_json_body

logger = logging.getLogger(__name__)

UPSTREAM_ERROR_BODY = json.dumps({"error": "Upstream error"})
MISSING_TOKEN_MESSAGE = "Missing VISITORS_API_TOKEN. Please set it in the environment."


class VisitorProxyService:
    """CRUD relay between the browser and the visitor-management backend.

    Each operation keeps its own failure policy: listing requires a token and
    reports transport failures as 502, registration rejects malformed JSON
    with 400, update and delete report every failure as 500.
    """

    UPSTREAM_PATH = "/api/visitor"

    def __init__(self, client: UpstreamClient) -> None:
        self._client = client

    def list_visitors(self, query: Optional[str]) -> RelayResult:
        if not self._client.token:
            return RelayResult.json(500, {"error": MISSING_TOKEN_MESSAGE})
        try:
            upstream = self._client.forward("GET", self.UPSTREAM_PATH, query=query, accept_json=True)
            if not upstream.ok:
                return RelayResult.passthrough(upstream, fallback_body=UPSTREAM_ERROR_BODY)
            return RelayResult.json(upstream.status_code, upstream.json())
        except (requests.RequestException, ValueError):
            logger.exception("Failed to fetch visitors")
            return RelayResult.json(502, {"error": "Failed to fetch visitors from upstream API"})

    def create_visitor(self, raw_body: bytes) -> RelayResult:
        try:
            payload = parse_json_body(raw_body)
        except ValueError:
            return RelayResult.json(400, {"error": "Invalid JSON body"})
        try:
            upstream = self._client.forward(
                "POST", self.UPSTREAM_PATH, payload=payload, send_json=True, accept_json=True
            )
        except requests.RequestException:
            logger.exception("Failed to register visitor")
            return RelayResult.json(502, {"error": "Failed to register visitor with upstream API"})
        if not upstream.ok:
            return RelayResult.passthrough(upstream, fallback_body=UPSTREAM_ERROR_BODY)
        return RelayResult.passthrough(upstream)

    def update_visitor(self, visitor_id: str, raw_body: bytes) -> RelayResult:
        try:
            payload = parse_json_body(raw_body)
            upstream = self._client.forward(
                "PUT", f"{self.UPSTREAM_PATH}/{visitor_id}", payload=payload, send_json=True
            )
        except (requests.RequestException, ValueError) as exc:
            logger.exception("Failed to update visitor %s", visitor_id)
            return self._failure("Failed to update visitor", exc)
        return RelayResult.json(upstream.status_code, self._json_or_empty(upstream))

    def delete_visitor(self, visitor_id: str) -> RelayResult:
        try:
            upstream = self._client.forward("DELETE", f"{self.UPSTREAM_PATH}/{visitor_id}")
        except requests.RequestException as exc:
            logger.exception("Failed to delete visitor %s", visitor_id)
            return self._failure("Failed to delete visitor", exc)
        return RelayResult.json(upstream.status_code, self._json_or_empty(upstream))

    def _json_or_empty(self, upstream: UpstreamResponse) -> Any:
        try:
            return upstream.json()
        except ValueError:
            return {}

    def _failure(self, message: str, exc: Exception) -> RelayResult:
        return RelayResult.json(
            500,
            {
                "success": False,
                "status": 500,
                "message": message,
                "error": str(exc) or "Unknown error",
            },
        )
