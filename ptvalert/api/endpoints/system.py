"""Health, version and static endpoints served outside the API prefix."""
from __future__ import annotations

from datetime import datetime, timezone
from functools import lru_cache
from pathlib import Path
from typing import Any

from fastapi import APIRouter, Depends
from fastapi.responses import Response

from ptvalert.api import deps
from ptvalert.config import Settings

router = APIRouter(tags=["system"])

FAVICON_PATH = Path(__file__).resolve().parents[2] / "static" / "favicon.ico"


@lru_cache(maxsize=1)
def _favicon_bytes() -> bytes:
    return FAVICON_PATH.read_bytes()


@router.get("/ping")
async def ping() -> dict[str, Any]:
    return {
        "success": True,
        "message": "pong",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/version")
async def version(settings: Settings = Depends(deps.get_settings)) -> dict[str, Any]:
    return {
        "success": True,
        "version": settings.VERSION,
        "environment": settings.ENVIRONMENT,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/favicon.ico", include_in_schema=False)
async def favicon() -> Response:
    return Response(content=_favicon_bytes(), media_type="image/x-icon")
