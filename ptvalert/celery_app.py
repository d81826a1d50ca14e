"""Celery application instance and configuration."""
from __future__ import annotations

from datetime import timedelta

from celery import Celery

from ptvalert.config import get_settings

settings = get_settings()


def _resolve_broker_url() -> str:
    if settings.CELERY_BROKER_URL is not None:
        return str(settings.CELERY_BROKER_URL)
    return str(settings.REDIS_URL)


def _resolve_result_backend() -> str:
    if settings.CELERY_RESULT_BACKEND is not None:
        return str(settings.CELERY_RESULT_BACKEND)
    return str(settings.REDIS_URL)


celery_app = Celery(
    "ptvalert",
    broker=_resolve_broker_url(),
    backend=_resolve_result_backend(),
    include=["ptvalert.tasks.notifications"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="Australia/Melbourne",
    enable_utc=True,
    task_track_started=True,
    task_time_limit=10 * 60,
    task_soft_time_limit=8 * 60,
    worker_prefetch_multiplier=1,
    worker_max_tasks_per_child=1000,
)

celery_app.conf.beat_schedule = {
    "sweep-recent-markers": {
        "task": "ptvalert.tasks.notifications.sweep_recent_markers",
        "schedule": timedelta(minutes=settings.SWEEP_INTERVAL_MINUTES),
    },
}

__all__ = ["celery_app"]
