from __future__ import annotations

import logging
import random
import re
import string
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, Callable, Dict, List, Optional

import requests

from funnel.client.storage import VISITOR_DATA_KEY, LocalStore
from funnel.schemas.visitor import VisitorRecord

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
FORM_FIELDS = (
    "fullName",
    "businessEmail",
    "phoneNumber",
    "companyName",
    "companyWebsite",
    "businessAddress",
    "businessType",
    "referralSource",
)
TRIMMED_FIELDS = FORM_FIELDS[:6]
BASE36 = string.digits + string.ascii_lowercase


@dataclass
class Notice:
    level: str
    message: str


def generate_client_id(now: datetime) -> str:
    suffix = "".join(random.choice(BASE36) for _ in range(11))
    return f"client_{int(now.timestamp() * 1000)}_{suffix}"


class RegistrationForm:
    """State and submission rules of the visitor registration step.

    ``registered`` only lives as long as this object: it blocks a second
    submission from the same form, not a second registration from a reload.
    """

    STATUS_MESSAGES = {
        400: "Invalid data provided. Please check your information.",
        409: "This email is already registered.",
        422: "Please check your information and try again.",
    }
    FIXED_STATUS_MESSAGES = {
        500: "Server error. Please try again later.",
        503: "Service temporarily unavailable. Please try again later.",
    }

    def __init__(
        self,
        transport,
        store: LocalStore,
        initial: Optional[Dict[str, str]] = None,
        on_registered: Optional[Callable[[Dict[str, Any]], None]] = None,
        clock: Callable[[], datetime] = lambda: datetime.now(UTC),
    ) -> None:
        self._transport = transport
        self._store = store
        self._on_registered = on_registered
        self._clock = clock
        self.values: Dict[str, str] = {name: "" for name in FORM_FIELDS}
        self.values.update(initial or {})
        self.validation_errors: Dict[str, str] = {}
        self.notices: List[Notice] = []
        self.is_registering = False
        self.registered = False

    def update(self, field: str, value: str) -> None:
        self.values[field] = value
        if self.validation_errors.get(field):
            self.validation_errors[field] = ""

    def validate(self) -> bool:
        errors: Dict[str, str] = {}
        if not self.values["fullName"].strip():
            errors["fullName"] = "Full name is required"
        email = self.values["businessEmail"]
        if not email.strip():
            errors["businessEmail"] = "Email is required"
        elif not EMAIL_PATTERN.match(email):
            errors["businessEmail"] = "Please enter a valid email address"
        self.validation_errors = errors
        return not errors

    def build_payload(self) -> Dict[str, Any]:
        now = self._clock()
        record = VisitorRecord(
            **{name: self.values[name].strip() for name in TRIMMED_FIELDS},
            businessType=self.values["businessType"],
            referralSource=self.values["referralSource"],
            timestamp=now.isoformat(),
            clientId=generate_client_id(now),
        )
        return record.model_dump(exclude_none=True)

    def submit(self) -> bool:
        """Submit the form; returns True when the visitor ends up registered."""
        if self.registered:
            self._notify("info", "You have already registered successfully!")
            return True
        if self.is_registering:
            return False
        if not self.validate():
            self._notify("error", "Please fill in all required fields correctly")
            return False

        self.is_registering = True
        self.validation_errors = {}
        try:
            payload = self.build_payload()
            try:
                response = self._transport.register(payload)
            except requests.RequestException:
                logger.exception("Registration request failed")
                self._notify("error", "Network error. Please check your connection and try again.")
                return False
            # requests.JSONDecodeError is also a RequestException
            try:
                result = self._interpret(response)
            except ValueError:
                logger.exception("Registration response could not be parsed")
                self._notify("error", "Server response error. Please try again later.")
                return False
            if response.ok and result.get("success") is not False:
                self._complete(payload, result)
            else:
                self._report_failure(response.status_code, result)
        finally:
            self.is_registering = False
        return self.registered

    def reset_registration(self) -> None:
        self.registered = False
        self._notify("info", "You can now register again")

    def _interpret(self, response) -> Dict[str, Any]:
        content_type = response.headers.get("content-type") or ""
        if "application/json" in content_type:
            result = response.json()
            if not isinstance(result, dict):
                raise ValueError("Registration response is not a JSON object")
            return result
        return {
            "success": response.ok,
            "message": response.text or "Registration completed successfully!",
        }

    def _complete(self, payload: Dict[str, Any], result: Dict[str, Any]) -> None:
        self.registered = True
        self._notify("success", result.get("message") or "Registration successful! Welcome aboard!")
        user = result.get("user") or {}
        now = self._clock()
        registration_id = str(user.get("id") or int(now.timestamp() * 1000))
        visitor = {
            **payload,
            "id": registration_id,
            "registrationId": registration_id,
            "registeredAt": now.isoformat(),
        }
        self._store.set_json(VISITOR_DATA_KEY, visitor)
        if self._on_registered:
            self._on_registered(visitor)
        self._notify("info", "Check your email for next steps!")

    def _report_failure(self, status_code: int, result: Dict[str, Any]) -> None:
        server_message = result.get("message")
        if status_code in self.FIXED_STATUS_MESSAGES:
            message = self.FIXED_STATUS_MESSAGES[status_code]
        elif status_code in self.STATUS_MESSAGES:
            message = server_message or self.STATUS_MESSAGES[status_code]
        else:
            message = server_message or f"Error {status_code}: Registration failed."
        level = "warning" if status_code == 409 else "error"
        self._notify(level, message)

    def _notify(self, level: str, message: str) -> None:
        self.notices.append(Notice(level=level, message=message))
