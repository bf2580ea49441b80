from __future__ import annotations

from functools import lru_cache
from typing import List

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Central application configuration."""

    app_name: str = Field(default="Get Started Funnel")
    debug: bool = Field(default=False)
    log_level: str = Field(default="INFO")

    # Payment backend
    payment_api_url: str = Field(default="http://localhost:8000")
    payment_api_token: str = Field(
        default="",
        validation_alias=AliasChoices("PAYMENT_API_TOKEN", "JWT_TOKEN"),
    )
    checkout_offline_fallback: bool = Field(default=False)
    stripe_webhook_secret: str = Field(default="")

    # Visitor backend
    visitors_api_url: str = Field(default="http://localhost:8000")
    visitors_api_token: str = Field(default="")

    # Browser-facing registration endpoint
    public_api_url: str = Field(
        default="http://localhost:8000/api",
        validation_alias=AliasChoices("PUBLIC_API_URL", "NEXT_PUBLIC_API_URL"),
    )
    registration_api_url: str = Field(default="")

    allowed_origins: List[str] = Field(
        default_factory=list,
        validation_alias="ALLOWED_ORIGINS",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        populate_by_name=True,
    )

    @property
    def registration_endpoint(self) -> str:
        if self.registration_api_url:
            return self.registration_api_url
        return f"{self.public_api_url.rstrip('/')}/visitor/register"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
