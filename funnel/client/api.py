from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict

import requests

logger = logging.getLogger(__name__)

DEFAULT_API_BASE_URL = "http://localhost:8080"
JSON_HEADERS = {"Content-Type": "application/json", "Accept": "application/json"}


@dataclass
class FunnelApiClient:
    """Calls this application's own API routes, as the browser would."""

    base_url: str = DEFAULT_API_BASE_URL
    session: requests.Session = field(default_factory=requests.Session)

    def post_json(self, path: str, payload: Dict[str, Any]) -> Any:
        url = self.base_url.rstrip("/") + path
        response = self.session.post(url, json=payload, headers=JSON_HEADERS)
        return response.json()

    def create_checkout_session(self, payload: Dict[str, Any]) -> Any:
        return self.post_json("/api/payment/checkout-session", payload)


@dataclass
class RegistrationTransport:
    """Posts registration payloads straight to the external visitor endpoint."""

    endpoint: str
    session: requests.Session = field(default_factory=requests.Session)

    def register(self, payload: Dict[str, Any]) -> requests.Response:
        logger.info("Sending registration for %s", payload.get("businessEmail"))
        return self.session.post(self.endpoint, json=payload, headers=JSON_HEADERS)
