"""Firebase-to-KV marker sync endpoint."""
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from ptvalert.api import deps
from ptvalert.schemas import MarkerImportRequest
from ptvalert.services.importer import MarkerImporter
from ptvalert.utils.exceptions import ValidationError

router = APIRouter(tags=["sync"])


@router.post("/sync-from-firebase")
async def sync_from_firebase(
    payload: MarkerImportRequest,
    importer: MarkerImporter = Depends(deps.get_importer),
) -> dict[str, Any]:
    records = payload.records()
    if records is None:
        raise ValidationError("Missing or invalid reports array")
    results = await importer.import_markers(records)
    return {"success": True, "message": "Firebase sync completed", "results": results}
