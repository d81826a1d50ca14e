"""Marker CRUD endpoints."""
from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, BackgroundTasks, Body, Depends, Query, status
from loguru import logger

from ptvalert.api import deps
from ptvalert.config import Settings
from ptvalert.services.markers import MarkerRepository, is_significant_update
from ptvalert.services.notification_service import NotificationDispatcher
from ptvalert.utils.exceptions import PtvAlertException

router = APIRouter(prefix="/markers", tags=["markers"])


async def notify_in_background(
    dispatcher: NotificationDispatcher, marker: dict[str, Any], *, updated: bool = False
) -> None:
    """Run after the response is sent; failures only reach the log."""

    try:
        await dispatcher.notify_marker(marker, updated=updated)
    except PtvAlertException as exc:
        logger.error("Background notification failed", marker_id=marker.get("id"), error=exc.message)


@router.get("")
async def list_markers(
    updated_since: Optional[str] = Query(None),
    limit: Optional[int] = Query(None, ge=1),
    markers: MarkerRepository = Depends(deps.get_marker_repository),
) -> dict[str, dict[str, Any]]:
    """Return every marker keyed by id, newest first."""

    return await markers.list_filtered(updated_since=updated_since, limit=limit)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_marker(
    background_tasks: BackgroundTasks,
    payload: dict[str, Any] = Body(...),
    markers: MarkerRepository = Depends(deps.get_marker_repository),
    dispatcher: NotificationDispatcher = Depends(deps.get_dispatcher),
    settings: Settings = Depends(deps.get_settings),
) -> dict[str, Any]:
    """Store a new marker and notify subscribers once the response is out."""

    marker = await markers.create(payload)
    if settings.NOTIFY_ON_MARKER_CREATE:
        background_tasks.add_task(notify_in_background, dispatcher, marker)
    return marker


@router.get("/{marker_id}")
async def read_marker(
    marker_id: str,
    markers: MarkerRepository = Depends(deps.get_marker_repository),
) -> dict[str, Any]:
    return await markers.get(marker_id)


@router.put("/{marker_id}")
async def update_marker(
    marker_id: str,
    background_tasks: BackgroundTasks,
    patch: dict[str, Any] = Body(...),
    markers: MarkerRepository = Depends(deps.get_marker_repository),
    dispatcher: NotificationDispatcher = Depends(deps.get_dispatcher),
) -> dict[str, Any]:
    """Merge the patch into the marker; high-priority changes notify subscribers."""

    marker = await markers.update(marker_id, patch)
    if is_significant_update(patch):
        background_tasks.add_task(notify_in_background, dispatcher, marker, updated=True)
    return marker


@router.delete("/{marker_id}")
async def delete_marker(
    marker_id: str,
    markers: MarkerRepository = Depends(deps.get_marker_repository),
) -> dict[str, bool]:
    await markers.delete(marker_id)
    return {"success": True}
