from __future__ import annotations

import logging
from datetime import UTC, datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from funnel.client.storage import PAYMENT_SESSION_KEY, VISITOR_DATA_KEY, LocalStore
from funnel.client.timers import Scheduler, TimerHandle

logger = logging.getLogger(__name__)

VERIFY_DELAY = 2.0
COUNTDOWN_SECONDS = 10
DASHBOARD_PATH = "/client/dashboard"
RETRY_PATH = "/get-started"


class SuccessPhase(str, Enum):
    VERIFYING = "verifying"
    VERIFIED = "verified"
    FAILED = "failed"
    REDIRECTED = "redirected"


class SuccessPage:
    """Post-payment landing page.

    Verification is simulated: any non-empty ``session_id`` is accepted after
    a fixed delay and no backend is consulted. Timers are explicit scheduler
    callbacks and are all released by ``unmount``.
    """

    def __init__(
        self,
        session_id: Optional[str],
        store: LocalStore,
        scheduler: Scheduler,
        navigate: Callable[[str], None],
        clock: Callable[[], datetime] = lambda: datetime.now(UTC),
    ) -> None:
        self.session_id = session_id
        self._store = store
        self._scheduler = scheduler
        self._navigate = navigate
        self._clock = clock
        self._timers: List[TimerHandle] = []
        self.phase = SuccessPhase.VERIFYING
        self.countdown = COUNTDOWN_SECONDS
        self.visitor: Optional[Dict[str, Any]] = None
        self.payment: Optional[Dict[str, Any]] = None

    def mount(self) -> None:
        self.visitor = self._store.get_json(VISITOR_DATA_KEY)
        self.payment = self._store.get_json(PAYMENT_SESSION_KEY)
        if not self.session_id:
            self.phase = SuccessPhase.FAILED
            return
        logger.info("Verifying payment for session %s", self.session_id)
        self._schedule(VERIFY_DELAY, self._verify)

    def unmount(self) -> None:
        for timer in self._timers:
            timer.cancel()
        self._timers.clear()

    def redirect_now(self) -> None:
        if self.phase is not SuccessPhase.VERIFIED:
            return
        self.unmount()
        self._redirect()

    def return_to_start(self) -> None:
        self.unmount()
        self._navigate(RETRY_PATH)

    def _verify(self) -> None:
        self.phase = SuccessPhase.VERIFIED
        if self.visitor is not None:
            self.visitor = {
                **self.visitor,
                "status": "client",
                "paymentSessionId": self.session_id,
                "paidAt": self._clock().isoformat(),
            }
            self._store.set_json(VISITOR_DATA_KEY, self.visitor)
        self._schedule(1.0, self._tick)

    def _tick(self) -> None:
        if self.phase is not SuccessPhase.VERIFIED:
            return
        self.countdown -= 1
        if self.countdown > 0:
            self._schedule(1.0, self._tick)
        else:
            self._redirect()

    def _redirect(self) -> None:
        self.phase = SuccessPhase.REDIRECTED
        self._navigate(DASHBOARD_PATH)

    def _schedule(self, delay: float, callback: Callable[[], None]) -> None:
        self._timers.append(self._scheduler.call_later(delay, callback))
