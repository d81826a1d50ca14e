"""Celery tasks package."""

from ptvalert.tasks import notifications

__all__ = ["notifications"]
