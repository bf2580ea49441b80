from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel


class WebhookEventType(str, Enum):
    CHECKOUT_SESSION_COMPLETED = "checkout.session.completed"
    PAYMENT_FAILED = "payment_intent.payment_failed"
    UNKNOWN = "unknown"

    @classmethod
    def from_label(cls, label: Optional[str]) -> "WebhookEventType":
        try:
            return cls(label)
        except ValueError:
            return cls.UNKNOWN


class WebhookEvent(BaseModel):
    type: Optional[str] = None
    data: Any = None

    @property
    def kind(self) -> WebhookEventType:
        return WebhookEventType.from_label(self.type)
