"""API routers."""
from fastapi import APIRouter

from ptvalert.api.endpoints import markers, notifications, sync, system, users


api_router = APIRouter()
api_router.include_router(notifications.router)
api_router.include_router(markers.router)
api_router.include_router(users.router)
api_router.include_router(sync.router)

root_router = APIRouter()
root_router.include_router(system.router)
