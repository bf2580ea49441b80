from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict

import requests
from pydantic import ValidationError

from funnel.adapters.upstream_client import UpstreamClient
from funnel.schemas.payment import CHECKOUT_REQUIRED_MESSAGE, CheckoutRequest
from funnel.services.relay import RelayResult, parse_json_body

logger = logging.getLogger(__name__)

CHECKOUT_SESSION_PLACEHOLDER = "{CHECKOUT_SESSION_ID}"


class CheckoutProxyService:
    """Forwards checkout-session requests to the payment backend."""

    UPSTREAM_PATH = "/api/v1/payment/create-checkout-session"

    def __init__(
        self,
        client: UpstreamClient,
        offline_fallback: bool = False,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._client = client
        self._offline_fallback = offline_fallback
        self._clock = clock

    def create_session(self, raw_body: bytes) -> RelayResult:
        try:
            body = parse_json_body(raw_body)
        except ValueError:
            body = None
        if not isinstance(body, dict):
            return RelayResult.json(400, {"success": False, "message": "Invalid JSON body"})
        try:
            request = CheckoutRequest.model_validate(body)
        except ValidationError:
            return RelayResult.json(400, {"success": False, "message": CHECKOUT_REQUIRED_MESSAGE})
        if request.missing_required():
            return RelayResult.json(400, {"success": False, "message": CHECKOUT_REQUIRED_MESSAGE})

        try:
            upstream = self._client.forward(
                "POST",
                self.UPSTREAM_PATH,
                payload=request.model_dump(exclude_none=True),
            )
            if not upstream.ok:
                if self._offline_fallback:
                    return self._offline_session(request, f"Backend API error: {upstream.status_code}")
                logger.warning("Checkout backend returned %s", upstream.status_code)
                return RelayResult.passthrough(upstream)
            data = upstream.json()
        except (requests.RequestException, ValueError) as exc:
            if self._offline_fallback:
                return self._offline_session(request, str(exc))
            logger.exception("Error creating checkout session")
            return RelayResult.json(
                502, {"success": False, "message": "Failed to create checkout session"}
            )

        logger.info("Checkout session created: %s", data)
        return RelayResult.json(upstream.status_code, data)

    def _offline_session(self, request: CheckoutRequest, reason: str) -> RelayResult:
        stamp = int(self._clock() * 1000)
        session_id = f"cs_test_{stamp}"
        logger.warning("Payment backend unavailable (%s); returning offline checkout session %s", reason, session_id)
        payload: Dict[str, Any] = {
            "success": True,
            "message": "Checkout session created successfully",
            "offline": True,
            "data": {
                "paymentId": f"payment_{stamp}",
                "sessionId": session_id,
                "url": (request.successUrl or "").replace(CHECKOUT_SESSION_PLACEHOLDER, session_id),
            },
        }
        return RelayResult.json(200, payload)
