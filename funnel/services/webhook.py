from __future__ import annotations

import logging
from typing import Optional

import stripe

from funnel.schemas.webhook import WebhookEvent, WebhookEventType
from funnel.services.relay import RelayResult, parse_json_body

logger = logging.getLogger(__name__)

HANDLER_FAILED = {"error": "Webhook handler failed"}


class WebhookService:
    """Receives payment-provider callbacks and logs them.

    Events are not persisted and replays are not detected. When a signing
    secret is configured the ``Stripe-Signature`` header must match the raw
    body before the event is looked at.
    """

    def __init__(self, signing_secret: str = "") -> None:
        self._signing_secret = signing_secret

    def receive(self, raw_body: bytes, signature: Optional[str] = None) -> RelayResult:
        if self._signing_secret:
            try:
                stripe.Webhook.construct_event(raw_body, signature or "", self._signing_secret)
            except ValueError:
                logger.warning("Webhook payload could not be parsed")
                return RelayResult.json(400, HANDLER_FAILED)
            except stripe.SignatureVerificationError:
                logger.warning("Webhook signature verification failed")
                return RelayResult.json(400, {"error": "Invalid signature"})

        try:
            body = parse_json_body(raw_body)
            event = WebhookEvent.model_validate(body)
            self.handle(event)
        except (ValueError, TypeError):
            logger.exception("Webhook error")
            return RelayResult.json(400, HANDLER_FAILED)
        return RelayResult.json(200, {"received": True})

    def handle(self, event: WebhookEvent) -> WebhookEventType:
        logger.info("Webhook received: type=%s", event.type)
        kind = event.kind
        if kind is WebhookEventType.CHECKOUT_SESSION_COMPLETED:
            logger.info("Payment successful: %s", self._payload_object(event))
        elif kind is WebhookEventType.PAYMENT_FAILED:
            logger.info("Payment failed: %s", self._payload_object(event))
        else:
            logger.info("Unhandled webhook type: %s", event.type)
        return kind

    def _payload_object(self, event: WebhookEvent):
        if not isinstance(event.data, dict):
            raise TypeError(f"{event.type} event is missing its data object")
        return event.data.get("object")
