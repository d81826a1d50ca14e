"""User privilege endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from ptvalert.api import deps
from ptvalert.schemas import AuthCheckResponse, BanRequest, UserFlagRequest
from ptvalert.services.users import UserFlagRepository

router = APIRouter(tags=["users"])


@router.post("/users/admin")
async def set_admin(
    payload: UserFlagRequest,
    flags: UserFlagRepository = Depends(deps.get_user_flags),
) -> dict[str, bool]:
    await flags.set_admin(payload.userId)
    return {"success": True}


@router.delete("/users/admin")
async def clear_admin(
    payload: UserFlagRequest,
    flags: UserFlagRepository = Depends(deps.get_user_flags),
) -> dict[str, bool]:
    await flags.clear_admin(payload.userId)
    return {"success": True}


@router.post("/users/ban")
async def ban_user(
    payload: BanRequest,
    flags: UserFlagRepository = Depends(deps.get_user_flags),
) -> dict[str, bool]:
    await flags.ban(payload.userId, reason=payload.reason, banned_by=payload.bannedBy)
    return {"success": True}


@router.post("/users/unban")
async def unban_user(
    payload: UserFlagRequest,
    flags: UserFlagRepository = Depends(deps.get_user_flags),
) -> dict[str, bool]:
    await flags.unban(payload.userId)
    return {"success": True}


@router.get("/auth/check", response_model=AuthCheckResponse)
async def auth_check(
    user_id: str = Query(..., alias="userId", min_length=1),
    flags: UserFlagRepository = Depends(deps.get_user_flags),
) -> AuthCheckResponse:
    """Return the admin and ban state of a user."""

    ban_info = await flags.ban_info(user_id)
    return AuthCheckResponse(
        userId=user_id,
        isAdmin=await flags.is_admin(user_id),
        isBanned=ban_info is not None,
        banInfo=ban_info,
    )
