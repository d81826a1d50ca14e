"""Push subscription and notification endpoints."""
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from ptvalert.api import deps
from ptvalert.config import Settings
from ptvalert.schemas import (
    SendNotificationRequest,
    SubscribeRequest,
    SubscribeResponse,
    UnsubscribeRequest,
    VapidConfigResponse,
)
from ptvalert.services.notification_service import NotificationDispatcher
from ptvalert.services.subscriptions import SubscriptionRepository

router = APIRouter(tags=["notifications"])


@router.post("/subscribe", response_model=SubscribeResponse)
async def subscribe(
    payload: SubscribeRequest,
    subscriptions: SubscriptionRepository = Depends(deps.get_subscription_repository),
) -> SubscribeResponse:
    """Register a push subscription; the same endpoint always maps to one record."""

    record = await subscriptions.save(payload.model_dump(exclude_none=True))
    return SubscribeResponse(id=record["id"])


@router.delete("/subscribe")
async def unsubscribe(
    payload: UnsubscribeRequest,
    subscriptions: SubscriptionRepository = Depends(deps.get_subscription_repository),
) -> dict[str, bool]:
    await subscriptions.remove_by_endpoint(payload.endpoint)
    return {"success": True}


@router.get("/test-config", response_model=VapidConfigResponse)
async def test_config(settings: Settings = Depends(deps.get_settings)) -> Any:
    """Report whether the VAPID key pair is configured."""

    report = VapidConfigResponse(
        success=settings.vapid_configured,
        message=(
            "Push notification configuration is valid"
            if settings.vapid_configured
            else "Push notification configuration is missing"
        ),
        publicKeyConfigured=bool(settings.VAPID_PUBLIC_KEY),
        privateKeyConfigured=bool(settings.VAPID_PRIVATE_KEY),
    )
    if not settings.vapid_configured:
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=report.model_dump())
    return report


@router.get("/vapid-public-key")
async def get_vapid_public_key(settings: Settings = Depends(deps.get_settings)) -> Any:
    if not settings.VAPID_PUBLIC_KEY:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "VAPID public key not configured"},
        )
    return {"publicKey": settings.VAPID_PUBLIC_KEY}


@router.post("/send-notification")
async def send_notification(
    payload: SendNotificationRequest,
    dispatcher: NotificationDispatcher = Depends(deps.get_dispatcher),
) -> dict[str, Any]:
    """Notify every subscriber about a marker.

    Individual delivery failures never fail the request; they are folded
    into the returned summary.
    """

    marker = {**(payload.markerData or {}), "id": payload.markerId}
    summary = await dispatcher.notify_marker(marker)
    return {
        "success": True,
        "message": "Notification processing complete",
        "summary": summary.as_dict(),
    }
