"""API endpoint modules."""

from ptvalert.api.endpoints import markers, notifications, sync, system, users

__all__ = ["markers", "notifications", "sync", "system", "users"]
