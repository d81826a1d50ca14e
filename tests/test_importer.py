"""Tests for bulk marker import."""
from __future__ import annotations

import pytest

from ptvalert.services.importer import MarkerImporter


@pytest.mark.asyncio
async def test_import_reports_per_record_failures(markers_repo) -> None:
    importer = MarkerImporter(markers_repo)
    records = [
        {"id": "a", "location": {"lat": -37.8, "lng": 144.9}, "description": "Signal fault"},
        {"id": "b", "description": "No location"},
        "not-a-marker",
        {"id": "c", "location": {"lat": -37.7, "lng": 145.0}, "description": "Bus diverted"},
    ]

    results = await importer.import_markers(records)

    assert results["total"] == 4
    assert results["processed"] == 4
    assert results["succeeded"] == 2
    assert results["failed"] == 2
    assert [error["markerId"] for error in results["errors"]] == ["b", "unknown"]
    assert sorted(await markers_repo.list_all()) == ["a", "c"]


@pytest.mark.asyncio
async def test_import_empty_batch(markers_repo) -> None:
    results = await MarkerImporter(markers_repo).import_markers([])

    assert results == {"total": 0, "processed": 0, "succeeded": 0, "failed": 0, "errors": []}
