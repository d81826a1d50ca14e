"""Marker persistence on top of the KV store."""
from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from loguru import logger
from pydantic import ValidationError as PydanticValidationError

from ptvalert.schemas.marker import MarkerCreate, MarkerLocation, MarkerUpdate
from ptvalert.utils.exceptions import NotFoundError, ValidationError
from ptvalert.utils.kv import KVNamespace


def utc_now_iso() -> str:
    """Current time as an ISO-8601 string with a ``Z`` suffix."""

    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_marker_time(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 string or epoch milliseconds into an aware datetime.

    Returns ``None`` for anything that cannot be interpreted.
    """

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def marker_time(marker: dict[str, Any]) -> Optional[datetime]:
    """Creation time of a marker, preferring ``time`` over ``timestamp``."""

    parsed = parse_marker_time(marker.get("time"))
    if parsed is None:
        parsed = parse_marker_time(marker.get("timestamp"))
    return parsed


def _validation_error(exc: PydanticValidationError) -> ValidationError:
    fields = sorted({".".join(str(part) for part in err["loc"]) for err in exc.errors()})
    return ValidationError(
        "Invalid marker data: " + ", ".join(fields),
        {"errors": exc.errors(include_url=False, include_context=False)},
    )


def _normalized_location(raw: Any, location: MarkerLocation) -> dict[str, Any]:
    """Client location with ``lat``/``lng`` replaced by their validated floats."""

    extra = raw if isinstance(raw, dict) else {}
    return {**extra, **location.model_dump()}


def is_significant_update(patch: dict[str, Any]) -> bool:
    """Whether an update should notify subscribers."""

    return patch.get("priority") == "high" or patch.get("statusChanged") is True


class MarkerRepository:
    """CRUD over marker records keyed by id."""

    def __init__(self, namespace: KVNamespace):
        self.namespace = namespace

    async def create(self, marker_input: dict[str, Any]) -> dict[str, Any]:
        """Validate and persist a new marker, returning the stored record."""

        if not isinstance(marker_input, dict):
            raise ValidationError("Marker data must be a JSON object")
        try:
            validated = MarkerCreate.model_validate(marker_input)
        except PydanticValidationError as exc:
            raise _validation_error(exc) from exc

        now = utc_now_iso()
        marker = dict(marker_input)
        marker["id"] = validated.id or str(uuid.uuid4())
        marker["location"] = _normalized_location(marker_input["location"], validated.location)
        if not marker.get("timestamp"):
            marker["timestamp"] = marker.get("time") or now
        marker.setdefault("createdAt", now)
        marker["updatedAt"] = now

        await self.namespace.put(marker["id"], marker)
        logger.info("Marker created", marker_id=marker["id"])
        return marker

    async def get(self, marker_id: str) -> dict[str, Any]:
        """Return a marker by id or raise ``NotFoundError``."""

        marker = await self.namespace.get(marker_id)
        if marker is None:
            raise NotFoundError(f"Marker {marker_id} not found")
        return marker

    async def update(self, marker_id: str, patch: dict[str, Any]) -> dict[str, Any]:
        """Merge ``patch`` into an existing marker; ``id`` cannot change."""

        if not isinstance(patch, dict):
            raise ValidationError("Marker update must be a JSON object")
        try:
            validated = MarkerUpdate.model_validate(patch)
        except PydanticValidationError as exc:
            raise _validation_error(exc) from exc

        existing = await self.get(marker_id)
        changes = {key: value for key, value in patch.items() if key != "id"}
        if validated.location is not None:
            changes["location"] = _normalized_location(patch["location"], validated.location)
        updated = {**existing, **changes}
        updated["id"] = marker_id
        updated["updatedAt"] = utc_now_iso()

        await self.namespace.put(marker_id, updated)
        logger.info("Marker updated", marker_id=marker_id, fields=sorted(patch))
        return updated

    async def delete(self, marker_id: str) -> None:
        """Remove a marker; deleting an unknown id is a no-op."""

        await self.namespace.delete(marker_id)
        logger.info("Marker deleted", marker_id=marker_id)

    async def list_all(self) -> dict[str, dict[str, Any]]:
        """Return every stored marker keyed by id."""

        markers = await self.namespace.items()
        for marker_id, marker in markers.items():
            marker.setdefault("id", marker_id)
        return markers

    async def list_recent_since(self, cutoff: datetime) -> dict[str, dict[str, Any]]:
        """Markers created strictly after ``cutoff``; unparsable times are skipped."""

        recent: dict[str, dict[str, Any]] = {}
        for marker_id, marker in (await self.list_all()).items():
            created = marker_time(marker)
            if created is not None and created > cutoff:
                recent[marker_id] = marker
        return recent

    async def list_filtered(
        self, *, updated_since: Optional[str] = None, limit: Optional[int] = None
    ) -> dict[str, dict[str, Any]]:
        """Mapping for the listing endpoint, newest first."""

        if updated_since is not None:
            cutoff = parse_marker_time(updated_since)
            if cutoff is None:
                raise ValidationError(f"Invalid updated_since value: {updated_since}")
            markers = await self.list_recent_since(cutoff)
        else:
            markers = await self.list_all()

        epoch = datetime.min.replace(tzinfo=timezone.utc)
        ordered = sorted(
            markers.items(),
            key=lambda item: marker_time(item[1]) or epoch,
            reverse=True,
        )
        if limit is not None:
            ordered = ordered[:limit]
        return dict(ordered)
