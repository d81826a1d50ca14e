"""Service for handling Web Push notifications."""
from __future__ import annotations

import asyncio
import json
import time
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from dataclasses import asdict, dataclass
from typing import Any, Optional

from loguru import logger
from pywebpush import WebPushException, webpush

from ptvalert.config import Settings
from ptvalert.services.markers import utc_now_iso
from ptvalert.services.subscriptions import SubscriptionRepository
from ptvalert.utils.exceptions import (
    DeliveryFailure,
    PermanentDeliveryFailure,
    TransientDeliveryFailure,
)
from ptvalert.utils.kv import KVNamespace

GONE_STATUSES = {404, 410}


class PushSender(ABC):
    """Delivers one encoded payload to one subscription."""

    enabled = True

    @abstractmethod
    def send(self, subscription_info: dict[str, Any], data: str) -> None:
        """Raise ``DeliveryFailure`` when the push service rejects the message."""


class WebPushSender(PushSender):
    """`pywebpush` backed sender signing requests with the VAPID key pair."""

    def __init__(self, settings: Settings):
        self.private_key = settings.VAPID_PRIVATE_KEY
        self.claims = {"sub": settings.VAPID_SUBJECT}
        self.ttl = settings.PUSH_TTL_SECONDS
        self.timeout = settings.PUSH_DELIVERY_TIMEOUT_SECONDS

    def send(self, subscription_info: dict[str, Any], data: str) -> None:
        try:
            webpush(
                subscription_info=subscription_info,
                data=data,
                vapid_private_key=self.private_key,
                vapid_claims=dict(self.claims),
                ttl=self.ttl,
                timeout=self.timeout,
            )
        except WebPushException as ex:
            status = getattr(ex.response, "status_code", None)
            # 404/410 means subscription expired/unsubscribed
            if status in GONE_STATUSES:
                raise PermanentDeliveryFailure(str(ex), status_code=status) from ex
            raise TransientDeliveryFailure(str(ex), status_code=status) from ex


class NullPushSender(PushSender):
    """Used when VAPID keys are missing; nothing is delivered."""

    enabled = False

    def send(self, subscription_info: dict[str, Any], data: str) -> None:
        logger.debug("Push disabled, dropping delivery", endpoint=subscription_info.get("endpoint"))


def build_push_sender(settings: Settings) -> PushSender:
    if settings.vapid_configured:
        return WebPushSender(settings)
    return NullPushSender()


@dataclass
class DispatchSummary:
    """Outcome counts of one fan-out."""

    attempted: int = 0
    succeeded: int = 0
    pruned: int = 0
    failed: int = 0

    def merge(self, other: "DispatchSummary") -> None:
        self.attempted += other.attempted
        self.succeeded += other.succeeded
        self.pruned += other.pruned
        self.failed += other.failed

    def as_dict(self) -> dict[str, int]:
        return asdict(self)


class NotificationDispatcher:
    """Formats marker notifications and fans them out to every subscription."""

    def __init__(
        self,
        settings: Settings,
        subscriptions: SubscriptionRepository,
        sender: PushSender,
        notified: Optional[KVNamespace] = None,
    ):
        self.settings = settings
        self.subscriptions = subscriptions
        self.sender = sender
        self.notified = notified

    def build_payload(self, marker: dict[str, Any], *, updated: bool = False) -> dict[str, Any]:
        """Notification body the service worker shows and routes on click."""

        base = self.settings.APP_BASE_PATH.rstrip("/")
        marker_id = marker.get("id")
        name = marker.get("title") or "Unnamed location"
        if updated:
            title = f"Map marker updated: {name}"
            body = marker.get("description") or "The map marker has been updated"
        else:
            title = f"New map marker: {name}"
            body = marker.get("description") or "A new map marker has been added"

        marker_info = dict(marker)
        if updated:
            marker_info["updated"] = True

        return {
            "title": title,
            "body": body,
            "icon": f"{base}/images/icon-192x192.png",
            "badge": f"{base}/images/badge-72x72.png",
            "data": {
                "url": f"{base}/marker-details.html?id={marker_id}",
                "dateOfArrival": int(time.time() * 1000),
                "primaryKey": 1,
                "markerId": marker_id,
                "markerInfo": marker_info,
            },
            "actions": [
                {"action": "view", "title": "View details"},
                {"action": "navigate", "title": "View map"},
            ],
        }

    async def dispatch_to_all(
        self,
        payload: dict[str, Any],
        subscriptions: Optional[dict[str, dict[str, Any]]] = None,
    ) -> DispatchSummary:
        """Deliver ``payload`` to every subscription, pruning gone endpoints.

        All deliveries run concurrently and are awaited together; one failure
        never cancels the others. The batch gets its own thread pool with one
        worker per subscription, so the timeout only covers an active send.
        """

        if not self.sender.enabled:
            logger.warning("VAPID keys not configured, skipping notification")
            return DispatchSummary()

        if subscriptions is None:
            subscriptions = await self.subscriptions.list_all()

        summary = DispatchSummary(attempted=len(subscriptions))
        if not subscriptions:
            return summary

        data = json.dumps(payload)
        ids = list(subscriptions)
        executor = ThreadPoolExecutor(max_workers=len(ids), thread_name_prefix="webpush")
        try:
            outcomes = await asyncio.gather(
                *(
                    self._deliver(subscription_id, subscriptions[subscription_id], data, executor)
                    for subscription_id in ids
                ),
                return_exceptions=True,
            )
        finally:
            # Timed-out sends keep their thread until pywebpush gives up.
            executor.shutdown(wait=False)

        for subscription_id, outcome in zip(ids, outcomes):
            if outcome is None:
                summary.succeeded += 1
            elif isinstance(outcome, PermanentDeliveryFailure):
                await self.subscriptions.remove(subscription_id)
                summary.pruned += 1
                logger.info("Pruned invalid subscription", subscription_id=subscription_id, status=outcome.push_status)
            else:
                summary.failed += 1
                logger.warning("WebPush failed", subscription_id=subscription_id, error=str(outcome))

        logger.info("Notification dispatched", **summary.as_dict())
        return summary

    async def _deliver(
        self,
        subscription_id: str,
        record: dict[str, Any],
        data: str,
        executor: ThreadPoolExecutor,
    ) -> None:
        subscription_info = record.get("subscription") if isinstance(record, dict) else None
        if not isinstance(subscription_info, dict) or not subscription_info.get("endpoint"):
            raise PermanentDeliveryFailure(f"Subscription {subscription_id} has no endpoint")
        loop = asyncio.get_running_loop()
        try:
            await asyncio.wait_for(
                loop.run_in_executor(executor, self.sender.send, subscription_info, data),
                timeout=self.settings.PUSH_DELIVERY_TIMEOUT_SECONDS,
            )
        except DeliveryFailure:
            raise
        except asyncio.TimeoutError as exc:
            raise TransientDeliveryFailure(f"Delivery to {subscription_id} timed out") from exc
        except Exception as exc:
            raise TransientDeliveryFailure(str(exc)) from exc

    async def notify_marker(self, marker: dict[str, Any], *, updated: bool = False) -> DispatchSummary:
        """Notify all subscribers about ``marker`` and record it as notified.

        Nothing is recorded while push is disabled, so a later sweep still
        delivers the marker once VAPID keys are configured.
        """

        summary = await self.dispatch_to_all(self.build_payload(marker, updated=updated))
        if self.sender.enabled and marker.get("id"):
            await self.mark_notified(marker["id"])
        return summary

    async def was_notified(self, marker_id: str) -> bool:
        if self.notified is None:
            return False
        return await self.notified.get(marker_id) is not None

    async def mark_notified(self, marker_id: str) -> None:
        if self.notified is None:
            return
        await self.notified.put(
            marker_id,
            {"markerId": marker_id, "notifiedAt": utc_now_iso()},
            ttl_seconds=self.settings.SWEEP_WINDOW_HOURS * 3600,
        )
