from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Header, Request, Response, status
from fastapi.concurrency import run_in_threadpool

from funnel.app.config import Settings
from funnel.app.dependencies import (
    get_checkout_service,
    get_settings,
    get_visitor_service,
    get_webhook_service,
)
from funnel.services.checkout import CheckoutProxyService
from funnel.services.relay import RelayResult
from funnel.services.visitors import VisitorProxyService
from funnel.services.webhook import WebhookService

router = APIRouter()


def _to_response(result: RelayResult) -> Response:
    return Response(
        content=result.body,
        status_code=result.status_code,
        media_type=result.content_type,
    )


@router.get("/health", status_code=status.HTTP_200_OK)
def health(settings: Settings = Depends(get_settings)) -> dict:
    return {"app": settings.app_name, "status": "ok"}


@router.post("/api/payment/checkout-session", tags=["Payments"])
@router.post("/api/payment/create-checkout-session", tags=["Payments"])
async def create_checkout_session(
    request: Request,
    service: CheckoutProxyService = Depends(get_checkout_service),
) -> Response:
    result = await run_in_threadpool(service.create_session, await request.body())
    return _to_response(result)


@router.post("/api/payment/webhook", tags=["Payments"])
async def payment_webhook(
    request: Request,
    stripe_signature: Optional[str] = Header(default=None),
    service: WebhookService = Depends(get_webhook_service),
) -> Response:
    result = await run_in_threadpool(service.receive, await request.body(), stripe_signature)
    return _to_response(result)


@router.get("/api/visitors", tags=["Visitors"])
async def list_visitors(
    request: Request,
    service: VisitorProxyService = Depends(get_visitor_service),
) -> Response:
    query = request.url.query
    result = await run_in_threadpool(service.list_visitors, query or None)
    return _to_response(result)


@router.post("/api/visitors", tags=["Visitors"])
async def create_visitor(
    request: Request,
    service: VisitorProxyService = Depends(get_visitor_service),
) -> Response:
    result = await run_in_threadpool(service.create_visitor, await request.body())
    return _to_response(result)


@router.put("/api/visitors/{visitor_id}", tags=["Visitors"])
async def update_visitor(
    visitor_id: str,
    request: Request,
    service: VisitorProxyService = Depends(get_visitor_service),
) -> Response:
    result = await run_in_threadpool(service.update_visitor, visitor_id, await request.body())
    return _to_response(result)


@router.delete("/api/visitors/{visitor_id}", tags=["Visitors"])
async def delete_visitor(
    visitor_id: str,
    service: VisitorProxyService = Depends(get_visitor_service),
) -> Response:
    result = await run_in_threadpool(service.delete_visitor, visitor_id)
    return _to_response(result)
