from __future__ import annotations

import json
import logging
import threading
import uuid
from typing import Any, Dict, MutableMapping, Optional, Tuple

logger = logging.getLogger(__name__)

VISITOR_DATA_KEY = "visitorData"
PAYMENT_SESSION_KEY = "paymentSession"


class LocalStore:
    """Browser-style key/value storage holding JSON strings.

    The backing mapping is a plain dict in tests and a ``StorageRegistry``
    bucket in the Streamlit UI. Values are neither versioned nor encrypted.
    """

    def __init__(self, backing: Optional[MutableMapping[str, Any]] = None) -> None:
        self._backing: MutableMapping[str, Any] = backing if backing is not None else {}

    def get_json(self, key: str) -> Optional[Any]:
        raw = self._backing.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except (TypeError, ValueError):
            logger.warning("Ignoring unreadable stored value for %s", key)
            return None

    def set_json(self, key: str, value: Any) -> None:
        self._backing[key] = json.dumps(value)

    def remove(self, key: str) -> None:
        self._backing.pop(key, None)


class StorageRegistry:
    """Keeps one storage bucket per browser so state outlives a UI session.

    A browser returning from the payment provider starts a fresh session and
    is matched back to its bucket through the cached checkout session id.
    """

    def __init__(self) -> None:
        self._buckets: Dict[str, Dict[str, Any]] = {}
        self._lock = threading.Lock()

    def open(self, key: Optional[str] = None) -> Tuple[str, LocalStore]:
        with self._lock:
            if key is None:
                key = uuid.uuid4().hex
            bucket = self._buckets.setdefault(key, {})
        return key, LocalStore(bucket)

    def find_by_checkout(self, session_id: Optional[str]) -> Optional[str]:
        if not session_id:
            return None
        with self._lock:
            buckets = list(self._buckets.items())
        for key, bucket in buckets:
            cached = LocalStore(bucket).get_json(PAYMENT_SESSION_KEY)
            if isinstance(cached, dict) and cached.get("sessionId") == session_id:
                return key
        return None

    def discard(self, key: str) -> None:
        with self._lock:
            self._buckets.pop(key, None)
