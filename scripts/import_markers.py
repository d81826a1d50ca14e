"""
Import a Firebase marker export into the KV store.

Usage examples:

  python scripts/import_markers.py --json markers-export.json

  KV_BACKEND=redis REDIS_URL=redis://cache:6379/0 \
      python scripts/import_markers.py --json export.json

The export may be a list of marker objects, an object keyed by marker id
(the Firebase realtime-database shape), or ``{"markers": [...]}``.
This script uses the same MarkerImporter as /api/sync-from-firebase, so
validation behaves identically to the HTTP sync.
"""
from __future__ import annotations

import argparse
import asyncio
import json
import os
from typing import Any

from ptvalert.config import get_settings
from ptvalert.services.importer import MarkerImporter
from ptvalert.services.markers import MarkerRepository
from ptvalert.utils.kv import build_kv_store


def _records_from_export(data: Any) -> list[Any]:
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        for key in ("markers", "reports"):
            if isinstance(data.get(key), list):
                return data[key]
        # Firebase exports key each marker by its id.
        return [
            {**value, "id": value.get("id") or key} if isinstance(value, dict) else value
            for key, value in data.items()
        ]
    raise SystemExit("Unsupported export format: expected a list or an object")


async def _run(records: list[Any]) -> dict[str, Any]:
    store = build_kv_store(get_settings())
    try:
        importer = MarkerImporter(MarkerRepository(store.markers))
        return await importer.import_markers(records)
    finally:
        await store.close()


def main() -> None:
    parser = argparse.ArgumentParser(description="Import exported markers into the KV store")
    parser.add_argument("--json", required=True, help="Path to the JSON export file")
    args = parser.parse_args()

    if not os.path.exists(args.json):
        raise SystemExit(f"Export file not found: {args.json}")

    with open(args.json, "r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise SystemExit(f"Failed to parse export: {e}")

    records = _records_from_export(data)
    print(f"Importing {len(records)} markers from {args.json}")
    results = asyncio.run(_run(records))
    print(f"Imported {results['succeeded']} of {results['total']} markers ({results['failed']} failed)")
    for error in results["errors"]:
        print(f"  - {error['markerId']}: {error['error']}")


if __name__ == "__main__":
    main()
