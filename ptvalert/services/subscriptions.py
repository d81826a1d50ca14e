"""Push subscription persistence on top of the KV store."""
from __future__ import annotations

import hashlib
from typing import Any, Optional

from loguru import logger

from ptvalert.services.markers import utc_now_iso
from ptvalert.utils.exceptions import ValidationError
from ptvalert.utils.kv import KVNamespace


def endpoint_hash(endpoint: str) -> str:
    """Stable id for a push endpoint (SHA-256 hex digest)."""

    return hashlib.sha256(endpoint.encode("utf-8")).hexdigest()


class SubscriptionRepository:
    """Stores at most one record per push endpoint."""

    def __init__(self, namespace: KVNamespace):
        self.namespace = namespace

    async def save(
        self, subscription_input: dict[str, Any], subscription_id: Optional[str] = None
    ) -> dict[str, Any]:
        """Register a new push subscription, overwriting one for the same endpoint."""

        subscription = subscription_input.get("subscription") if isinstance(subscription_input, dict) else None
        if not isinstance(subscription, dict):
            raise ValidationError("Missing subscription data")
        endpoint = subscription.get("endpoint")
        if not endpoint or not isinstance(endpoint, str):
            raise ValidationError("Subscription endpoint required")

        record_id = subscription_id or endpoint_hash(endpoint)
        existing = await self.namespace.get(record_id)
        now = utc_now_iso()
        created_at = subscription_input.get("createdAt") or (existing or {}).get("createdAt") or now

        record = {
            "id": record_id,
            "subscription": subscription,
            "userId": subscription_input.get("userId") or "anonymous",
            "createdAt": created_at,
            "updatedAt": now,
        }
        await self.namespace.put(record_id, record)
        logger.info(
            "Subscription stored",
            subscription_id=record_id,
            user_id=record["userId"],
            replaced=existing is not None,
        )
        return record

    async def remove_by_endpoint(self, endpoint: str) -> str:
        """Delete the record for ``endpoint`` if present and return its id."""

        if not endpoint:
            raise ValidationError("Endpoint required")
        record_id = endpoint_hash(endpoint)
        await self.remove(record_id)
        return record_id

    async def remove(self, subscription_id: str) -> None:
        await self.namespace.delete(subscription_id)
        logger.info("Subscription removed", subscription_id=subscription_id)

    async def list_all(self) -> dict[str, dict[str, Any]]:
        return await self.namespace.items()
