from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from funnel.adapters.upstream_client import DEFAULT_CONTENT_TYPE, UpstreamResponse


def parse_json_body(raw: bytes) -> Any:
    """Decode an inbound request body; raises ``ValueError`` when it is not JSON."""
    if not raw:
        raise ValueError("Empty request body")
    return json.loads(raw)


@dataclass
class RelayResult:
    """Status, body and content type a proxy route hands back to the browser."""

    status_code: int
    body: str
    content_type: str = DEFAULT_CONTENT_TYPE

    @classmethod
    def json(cls, status_code: int, payload: Any) -> "RelayResult":
        return cls(status_code=status_code, body=json.dumps(payload))

    @classmethod
    def passthrough(cls, upstream: UpstreamResponse, fallback_body: str = "") -> "RelayResult":
        return cls(
            status_code=upstream.status_code,
            body=upstream.text or fallback_body,
            content_type=upstream.content_type,
        )

    def payload(self) -> Any:
        return json.loads(self.body) if self.body else None
