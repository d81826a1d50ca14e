"""Pydantic models for user flag endpoints."""
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class UserFlagRequest(BaseModel):
    """Identify the user whose admin flag is set or cleared."""

    userId: str = Field(min_length=1)


class BanRequest(BaseModel):
    """Ban a user, optionally recording why and by whom."""

    userId: str = Field(min_length=1)
    reason: Optional[str] = None
    bannedBy: Optional[str] = None


class AuthCheckResponse(BaseModel):
    """Privilege lookup for a user id."""

    authenticated: bool = True
    userId: str
    isAdmin: bool
    isBanned: bool
    banInfo: Optional[dict] = None
