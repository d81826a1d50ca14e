"""Pydantic models for push subscription requests."""
from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class PushSubscriptionInfo(BaseModel):
    """Browser ``PushSubscription`` JSON as sent by the client."""

    endpoint: str = Field(min_length=1)
    keys: Optional[dict[str, str]] = None

    model_config = ConfigDict(extra="allow")


class SubscribeRequest(BaseModel):
    """Register (or refresh) a push subscription."""

    subscription: PushSubscriptionInfo
    userId: Optional[str] = None


class UnsubscribeRequest(BaseModel):
    """Remove the subscription registered for ``endpoint``."""

    endpoint: str = Field(min_length=1)


class SubscribeResponse(BaseModel):
    success: bool = True
    id: str


class VapidConfigResponse(BaseModel):
    """VAPID configuration report."""

    success: bool
    message: str
    publicKeyConfigured: bool
    privateKeyConfigured: bool


class SendNotificationRequest(BaseModel):
    """Ask the service to notify every subscriber about a marker."""

    markerId: str = Field(min_length=1)
    markerData: Optional[dict[str, Any]] = None
