from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import requests

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/json"


@dataclass
class UpstreamResponse:
    status_code: int
    body: bytes
    content_type: str = DEFAULT_CONTENT_TYPE

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")

    def json(self) -> Any:
        """Decode the body as JSON; raises ``ValueError`` on malformed content."""
        return json.loads(self.text)


@dataclass
class UpstreamClient:
    """Relays requests to an external backend with an optional bearer token.

    No timeout and no retry are applied. Transport errors surface as
    ``requests.RequestException`` so each route can apply its own policy.
    """

    base_url: str
    token: str = ""
    session: requests.Session = field(default_factory=requests.Session)

    def build_url(self, path: str, query: Optional[str] = None) -> str:
        url = self.base_url.rstrip("/") + path
        if query:
            url = f"{url}?{query}"
        return url

    def headers(self, *, accept_json: bool = False, send_json: bool = False) -> Dict[str, str]:
        headers: Dict[str, str] = {}
        if send_json:
            headers["Content-Type"] = DEFAULT_CONTENT_TYPE
        if accept_json:
            headers["Accept"] = DEFAULT_CONTENT_TYPE
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def forward(
        self,
        method: str,
        path: str,
        *,
        query: Optional[str] = None,
        payload: Any = None,
        send_json: bool = False,
        accept_json: bool = False,
    ) -> UpstreamResponse:
        url = self.build_url(path, query)
        has_body = payload is not None or send_json
        logger.info("Forwarding %s %s", method, url)
        response = self.session.request(
            method,
            url,
            headers=self.headers(accept_json=accept_json, send_json=has_body),
            data=json.dumps(payload).encode("utf-8") if has_body else None,
        )
        content_type = response.headers.get("Content-Type") or DEFAULT_CONTENT_TYPE
        logger.info("Upstream %s %s responded %s", method, url, response.status_code)
        return UpstreamResponse(
            status_code=response.status_code,
            body=response.content,
            content_type=content_type,
        )
