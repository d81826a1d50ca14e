"""Service layer package."""

from ptvalert.services.importer import MarkerImporter
from ptvalert.services.markers import MarkerRepository
from ptvalert.services.notification_service import NotificationDispatcher
from ptvalert.services.subscriptions import SubscriptionRepository
from ptvalert.services.users import UserFlagRepository

__all__ = [
    "MarkerImporter",
    "MarkerRepository",
    "NotificationDispatcher",
    "SubscriptionRepository",
    "UserFlagRepository",
]
