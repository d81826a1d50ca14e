"""Periodic scan that notifies subscribers about recently added markers."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

from loguru import logger

from ptvalert.services.markers import MarkerRepository
from ptvalert.services.notification_service import DispatchSummary, NotificationDispatcher


async def run_sweep(
    markers: MarkerRepository,
    dispatcher: NotificationDispatcher,
    *,
    window_hours: int,
    now: Optional[datetime] = None,
) -> dict[str, int]:
    """Dispatch a notification for each marker inside the window not yet notified."""

    now = now or datetime.now(timezone.utc)
    cutoff = now - timedelta(hours=window_hours)
    recent = await markers.list_recent_since(cutoff)

    totals = DispatchSummary()
    notified = 0
    skipped = 0
    for marker_id, marker in recent.items():
        if await dispatcher.was_notified(marker_id):
            skipped += 1
            continue
        totals.merge(await dispatcher.notify_marker({**marker, "id": marker_id}))
        notified += 1

    logger.info(
        "Marker sweep finished",
        checked=len(recent),
        notified=notified,
        skipped=skipped,
        pruned=totals.pruned,
    )
    return {
        "checked": len(recent),
        "notified": notified,
        "skipped": skipped,
        "pruned": totals.pruned,
    }
