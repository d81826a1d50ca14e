"""Tests for Celery background tasks."""
from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest

from ptvalert.celery_app import celery_app, settings as celery_settings
from ptvalert.tasks.notifications import sweep_recent_markers

FLOOD = {"location": {"lat": -37.8136, "lng": 144.9631}, "description": "Flood on Swanston St"}


@pytest.fixture()
def seeded_store(store, markers_repo, subscriptions_repo):
    now = datetime.now(timezone.utc)

    async def seed() -> None:
        await markers_repo.create(dict(FLOOD, id="fresh", timestamp=(now - timedelta(hours=2)).isoformat()))
        await markers_repo.create(dict(FLOOD, id="stale", timestamp=(now - timedelta(hours=48)).isoformat()))
        await subscriptions_repo.save({"subscription": {"endpoint": "https://push.example/abc"}})

    asyncio.run(seed())
    return store


@pytest.fixture()
def patched_task(settings, seeded_store, push_sender):
    with patch("ptvalert.tasks.notifications.get_settings", return_value=settings), patch(
        "ptvalert.tasks.notifications.build_kv_store", return_value=seeded_store
    ), patch("ptvalert.tasks.notifications.build_push_sender", return_value=push_sender):
        yield


def test_sweep_notifies_recent_marker_once(patched_task, push_sender) -> None:
    first = sweep_recent_markers.run()
    second = sweep_recent_markers.run()

    assert first == {"checked": 1, "notified": 1, "skipped": 0, "pruned": 0}
    assert second == {"checked": 1, "notified": 0, "skipped": 1, "pruned": 0}
    assert len(push_sender.sent) == 1
    assert push_sender.sent[0][1]["data"]["markerId"] == "fresh"


def test_sweep_window_override(patched_task, push_sender) -> None:
    result = sweep_recent_markers.run(window_hours=72)

    assert result["checked"] == 2
    assert result["notified"] == 2
    assert sorted(payload["data"]["markerId"] for _, payload in push_sender.sent) == ["fresh", "stale"]


def test_sweep_is_scheduled_on_beat() -> None:
    entry = celery_app.conf.beat_schedule["sweep-recent-markers"]

    assert entry["task"] == sweep_recent_markers.name
    assert entry["schedule"] == timedelta(minutes=celery_settings.SWEEP_INTERVAL_MINUTES)
