"""Celery tasks for marker notifications."""
from __future__ import annotations

import asyncio
from typing import Optional

from ptvalert.celery_app import celery_app
from ptvalert.config import Settings, get_settings
from ptvalert.services.markers import MarkerRepository
from ptvalert.services.notification_service import NotificationDispatcher, build_push_sender
from ptvalert.services.subscriptions import SubscriptionRepository
from ptvalert.services.sweep import run_sweep
from ptvalert.utils.kv import KVStore, build_kv_store


async def _sweep(settings: Settings, store: KVStore) -> dict[str, int]:
    dispatcher = NotificationDispatcher(
        settings,
        SubscriptionRepository(store.subscriptions),
        build_push_sender(settings),
        notified=store.notified,
    )
    try:
        return await run_sweep(
            MarkerRepository(store.markers),
            dispatcher,
            window_hours=settings.SWEEP_WINDOW_HOURS,
        )
    finally:
        await store.close()


@celery_app.task(name="ptvalert.tasks.notifications.sweep_recent_markers")
def sweep_recent_markers(window_hours: Optional[int] = None) -> dict[str, int]:
    """Notify subscribers about markers added inside the trailing window."""

    settings = get_settings()
    if window_hours is not None:
        settings = settings.model_copy(update={"SWEEP_WINDOW_HOURS": window_hours})
    store = build_kv_store(settings)
    return asyncio.run(_sweep(settings, store))
