"""Service layer for user privilege flags."""
from __future__ import annotations

from typing import Any, Optional

from loguru import logger

from ptvalert.services.markers import utc_now_iso
from ptvalert.utils.exceptions import ValidationError
from ptvalert.utils.kv import KVNamespace


class UserFlagRepository:
    """Admin flags and ban records keyed by user id."""

    def __init__(self, admins: KVNamespace, banned: KVNamespace):
        self.admins = admins
        self.banned = banned

    @staticmethod
    def _require(user_id: str) -> None:
        if not user_id:
            raise ValidationError("Missing userId")

    async def set_admin(self, user_id: str) -> None:
        self._require(user_id)
        await self.admins.put(user_id, {"isAdmin": True, "updatedAt": utc_now_iso()})
        logger.info("Admin flag set", user_id=user_id)

    async def clear_admin(self, user_id: str) -> None:
        self._require(user_id)
        await self.admins.delete(user_id)
        logger.info("Admin flag cleared", user_id=user_id)

    async def is_admin(self, user_id: str) -> bool:
        flag = await self.admins.get(user_id)
        # Older records were stored as the bare string "true".
        if isinstance(flag, dict):
            return bool(flag.get("isAdmin"))
        return flag is True or flag == "true"

    async def ban(
        self, user_id: str, *, reason: Optional[str] = None, banned_by: Optional[str] = None
    ) -> dict[str, Any]:
        """Record a ban and return the stored ban info."""

        self._require(user_id)
        ban_info = {
            "reason": reason or "Violation of community rules",
            "time": utc_now_iso(),
            "bannedBy": banned_by or "admin",
        }
        await self.banned.put(user_id, ban_info)
        logger.info("User banned", user_id=user_id, banned_by=ban_info["bannedBy"])
        return ban_info

    async def unban(self, user_id: str) -> None:
        self._require(user_id)
        await self.banned.delete(user_id)
        logger.info("User unbanned", user_id=user_id)

    async def ban_info(self, user_id: str) -> Optional[dict[str, Any]]:
        return await self.banned.get(user_id)
