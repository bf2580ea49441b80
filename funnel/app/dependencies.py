from __future__ import annotations

from functools import lru_cache

from fastapi import Depends

from funnel.adapters.upstream_client import UpstreamClient
from funnel.app.config import Settings, get_settings
from funnel.services.checkout import CheckoutProxyService
from funnel.services.visitors import VisitorProxyService
from funnel.services.webhook import WebhookService


@lru_cache(maxsize=1)
def get_payment_client() -> UpstreamClient:
    settings = get_settings()
    return UpstreamClient(base_url=settings.payment_api_url, token=settings.payment_api_token)


@lru_cache(maxsize=1)
def get_visitors_client() -> UpstreamClient:
    settings = get_settings()
    return UpstreamClient(base_url=settings.visitors_api_url, token=settings.visitors_api_token)


def get_checkout_service(
    settings: Settings = Depends(get_settings),
    client: UpstreamClient = Depends(get_payment_client),
) -> CheckoutProxyService:
    return CheckoutProxyService(client=client, offline_fallback=settings.checkout_offline_fallback)


def get_webhook_service(settings: Settings = Depends(get_settings)) -> WebhookService:
    return WebhookService(signing_secret=settings.stripe_webhook_secret)


def get_visitor_service(
    client: UpstreamClient = Depends(get_visitors_client),
) -> VisitorProxyService:
    return VisitorProxyService(client=client)
