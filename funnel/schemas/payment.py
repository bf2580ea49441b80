from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

CHECKOUT_REQUIRED_MESSAGE = "Amount, customer email, success URL, and cancel URL are required"


class CheckoutRequest(BaseModel):
    amount: Optional[int] = Field(default=None, description="Amount in minor currency units")
    currency: str = "usd"
    customerEmail: Optional[str] = None
    customerName: Optional[str] = None
    successUrl: Optional[str] = None
    cancelUrl: Optional[str] = None
    description: str = "Project Payment"
    metadata: Dict[str, Any] = Field(default_factory=dict)

    def missing_required(self) -> bool:
        return not (self.amount and self.customerEmail and self.successUrl and self.cancelUrl)


class CheckoutSessionData(BaseModel):
    paymentId: Optional[str] = None
    sessionId: Optional[str] = None
    url: Optional[str] = None


class CheckoutSessionResult(BaseModel):
    success: bool = False
    message: Optional[str] = None
    data: CheckoutSessionData = Field(default_factory=CheckoutSessionData)


class PaymentSessionCache(BaseModel):
    sessionId: Optional[str] = None
    paymentId: Optional[str] = None
    amount: int
    timestamp: str
