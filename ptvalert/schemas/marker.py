"""Pydantic models for marker API interactions."""
from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class MarkerLocation(BaseModel):
    """Geographic position of a marker."""

    lat: float = Field(allow_inf_nan=False)
    lng: float = Field(allow_inf_nan=False)


class MarkerCreate(BaseModel):
    """Fields required to create a marker; unknown fields are kept."""

    id: Optional[str] = None
    location: MarkerLocation
    description: str

    model_config = ConfigDict(extra="allow")

    @field_validator("id")
    @classmethod
    def id_not_blank(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not value.strip():
            return None
        return value

    @field_validator("description")
    @classmethod
    def description_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("description must not be empty")
        return value


class MarkerUpdate(BaseModel):
    """Partial marker update; present fields are validated like on create."""

    location: Optional[MarkerLocation] = None
    description: Optional[str] = None

    model_config = ConfigDict(extra="allow")

    # Validators only see keys present in the patch; an explicit null is rejected.
    @field_validator("location")
    @classmethod
    def location_not_null(cls, value: Optional[MarkerLocation]) -> MarkerLocation:
        if value is None:
            raise ValueError("location must not be null")
        return value

    @field_validator("description")
    @classmethod
    def description_not_blank(cls, value: Optional[str]) -> str:
        if value is None or not value.strip():
            raise ValueError("description must not be empty")
        return value


class MarkerImportRequest(BaseModel):
    """Batch of marker records pushed by the Firebase sync client."""

    reports: Optional[list[dict[str, Any]]] = None
    markers: Optional[list[dict[str, Any]]] = None

    def records(self) -> Optional[list[dict[str, Any]]]:
        if self.reports is not None:
            return self.reports
        return self.markers
