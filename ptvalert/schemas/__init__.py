"""Pydantic schemas package."""

from ptvalert.schemas.marker import MarkerCreate, MarkerImportRequest, MarkerLocation, MarkerUpdate
from ptvalert.schemas.subscription import (
    PushSubscriptionInfo,
    SendNotificationRequest,
    SubscribeRequest,
    SubscribeResponse,
    UnsubscribeRequest,
    VapidConfigResponse,
)
from ptvalert.schemas.user import AuthCheckResponse, BanRequest, UserFlagRequest

__all__ = [
    "MarkerCreate",
    "MarkerImportRequest",
    "MarkerLocation",
    "MarkerUpdate",
    "PushSubscriptionInfo",
    "SendNotificationRequest",
    "SubscribeRequest",
    "SubscribeResponse",
    "UnsubscribeRequest",
    "VapidConfigResponse",
    "AuthCheckResponse",
    "BanRequest",
    "UserFlagRequest",
]
