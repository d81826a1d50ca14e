"""Bulk import of marker records exported from Firebase."""
from __future__ import annotations

from typing import Any, Iterable

from loguru import logger

from ptvalert.services.markers import MarkerRepository
from ptvalert.utils.exceptions import ValidationError


class MarkerImporter:
    """Feeds exported records through ``MarkerRepository.create`` one by one."""

    def __init__(self, markers: MarkerRepository):
        self.markers = markers

    async def import_markers(self, records: Iterable[Any]) -> dict[str, Any]:
        """Import every record; a bad record is reported, never fatal to the batch."""

        records = list(records)
        results: dict[str, Any] = {
            "total": len(records),
            "processed": 0,
            "succeeded": 0,
            "failed": 0,
            "errors": [],
        }

        for record in records:
            results["processed"] += 1
            marker_id = record.get("id") if isinstance(record, dict) else None
            try:
                await self.markers.create(record)
            except ValidationError as exc:
                results["failed"] += 1
                results["errors"].append({"markerId": marker_id or "unknown", "error": exc.message})
                continue
            results["succeeded"] += 1

        logger.info(
            "Marker import completed",
            total=results["total"],
            succeeded=results["succeeded"],
            failed=results["failed"],
        )
        return results
