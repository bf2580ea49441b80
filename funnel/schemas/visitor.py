from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

BUSINESS_TYPES = ("Startup", "SME", "Nonprofit", "Enterprise", "Government", "Freelancer", "Other")
REFERRAL_SOURCES = (
    "Google",
    "Social Media",
    "Referral",
    "Email",
    "Advertisement",
    "Conference/Event",
    "Other",
)


class VisitorRecord(BaseModel):
    """Registration payload as sent to the visitor backend and cached client-side."""

    model_config = ConfigDict(extra="allow")

    fullName: str = Field(..., description="Visitor's full name, trimmed")
    businessEmail: str = Field(..., description="Contact email, trimmed")
    phoneNumber: str = ""
    companyName: str = ""
    companyWebsite: str = ""
    businessAddress: str = ""
    businessType: str = Field(default="", description="One of BUSINESS_TYPES or empty")
    referralSource: str = Field(default="", description="One of REFERRAL_SOURCES or empty")
    timestamp: str = Field(..., description="ISO-8601 submission time")
    clientId: str = Field(..., description="Locally generated tracking id")
    id: Optional[str] = None
    status: Optional[str] = None
