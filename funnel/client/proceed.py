from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import Any, Callable, Dict, Optional

import requests
from pydantic import ValidationError

from funnel.client.storage import PAYMENT_SESSION_KEY, VISITOR_DATA_KEY, LocalStore
from funnel.schemas.payment import CheckoutSessionResult, PaymentSessionCache

logger = logging.getLogger(__name__)

PROJECT_ESTIMATE = 5400
DEPOSIT_RATE = 0.25
QUOTE_DOCUMENT_PATH = "/project-quote.pdf"
GUEST_EMAIL = "guest@primelogicsol.com"
GUEST_NAME = "Guest User"


class ProceedOption(str, Enum):
    SECURE = "secure"
    QUOTE = "quote"
    CONSULTATION = "consultation"

    @property
    def label(self) -> str:
        return {
            ProceedOption.SECURE: "Secure My Project",
            ProceedOption.QUOTE: "Request Formal Quote",
            ProceedOption.CONSULTATION: "Schedule Free Consultation",
        }[self]


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def estimated_amounts(estimate: int = PROJECT_ESTIMATE) -> tuple[int, int]:
    """Return the project estimate and its deposit, both in whole dollars."""
    return estimate, round_half_up(estimate * DEPOSIT_RATE)


@dataclass
class ProceedResult:
    option: ProceedOption
    completed: bool
    action: Optional[str] = None
    detail: Optional[str] = None


class CheckoutInitiator:
    """Requests a hosted checkout session for the deposit and hands off to it."""

    def __init__(
        self,
        api,
        store: LocalStore,
        navigate: Callable[[str], None],
        origin: str,
        clock: Callable[[], datetime] = lambda: datetime.now(UTC),
    ) -> None:
        self._api = api
        self._store = store
        self._navigate = navigate
        self._origin = origin.rstrip("/")
        self._clock = clock
        self.processing = False
        self.error: Optional[str] = None

    def build_request(self, deposit: int) -> Dict[str, Any]:
        visitor = self._store.get_json(VISITOR_DATA_KEY) or {}
        return {
            "amount": deposit * 100,
            "currency": "usd",
            "customerEmail": visitor.get("businessEmail") or GUEST_EMAIL,
            "customerName": visitor.get("fullName") or GUEST_NAME,
            "successUrl": f"{self._origin}/get-started/success?session_id={{CHECKOUT_SESSION_ID}}",
            "cancelUrl": f"{self._origin}/get-started?step=payment",
            "description": "Project Development - 25% Deposit",
            "metadata": {
                "visitorId": visitor.get("id") or "guest",
                "projectType": "custom_development",
                "depositPercentage": "25",
            },
        }

    def start(self) -> bool:
        """Create the session and navigate to it; returns True on handoff."""
        self.processing = True
        self.error = None
        try:
            _, deposit = estimated_amounts()
            raw = self._api.create_checkout_session(self.build_request(deposit))
            result = self._parse(raw)
            if result is None or not result.success or not result.data.url:
                message = raw.get("message") if isinstance(raw, dict) else None
                self.error = message or "Failed to create payment session"
                return False
            cache = PaymentSessionCache(
                sessionId=result.data.sessionId,
                paymentId=result.data.paymentId,
                amount=deposit,
                timestamp=self._clock().isoformat(),
            )
            self._store.set_json(PAYMENT_SESSION_KEY, cache.model_dump())
            self._navigate(result.data.url)
            return True
        except (requests.RequestException, ValueError):
            logger.exception("Checkout session request failed")
            self.error = "Network error. Please try again."
            return False
        finally:
            self.processing = False

    def _parse(self, raw: Any) -> Optional[CheckoutSessionResult]:
        try:
            return CheckoutSessionResult.model_validate(raw)
        except ValidationError:
            return None


class ProceedOptions:
    """The 'how would you like to proceed' step of the funnel."""

    def __init__(
        self,
        initiator: CheckoutInitiator,
        on_update: Optional[Callable[[Dict[str, Any]], None]] = None,
    ) -> None:
        self._initiator = initiator
        self._on_update = on_update
        self.selected: Optional[ProceedOption] = None
        self.notice: Optional[str] = None

    @property
    def processing(self) -> bool:
        return self._initiator.processing

    @property
    def error(self) -> Optional[str]:
        return self._initiator.error

    def select(self, option: ProceedOption | str) -> None:
        self.selected = ProceedOption(option)
        self._initiator.error = None
        self._update({"selectedOption": self.selected.value, "completed": False})

    def proceed(self) -> Optional[ProceedResult]:
        if self.selected is None or self.processing:
            return None
        if self.selected is ProceedOption.SECURE:
            handed_off = self._initiator.start()
            return ProceedResult(option=self.selected, completed=handed_off, action="checkout")
        if self.selected is ProceedOption.QUOTE:
            # Quote documents are not generated by the backend yet.
            self.notice = "PDF backend not implemented yet. Contact your backend developer."
            result = ProceedResult(
                option=self.selected,
                completed=True,
                action="downloaded_quote",
                detail=QUOTE_DOCUMENT_PATH,
            )
        else:
            result = ProceedResult(option=self.selected, completed=True, action="opened_calendar")
        self._update({"selectedOption": self.selected.value, "completed": True, "action": result.action})
        return result

    def _update(self, data: Dict[str, Any]) -> None:
        if self._on_update:
            self._on_update(data)
