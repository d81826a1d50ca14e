"""Shared API dependencies."""
from __future__ import annotations

from fastapi import Depends, Request

from ptvalert.config import Settings
from ptvalert.services.importer import MarkerImporter
from ptvalert.services.markers import MarkerRepository
from ptvalert.services.notification_service import NotificationDispatcher, PushSender
from ptvalert.services.subscriptions import SubscriptionRepository
from ptvalert.services.users import UserFlagRepository
from ptvalert.utils.kv import KVStore


def get_settings(request: Request) -> Settings:
    """Settings the application was created with."""

    return request.app.state.settings


def get_kv_store(request: Request) -> KVStore:
    return request.app.state.kv_store


def get_push_sender(request: Request) -> PushSender:
    return request.app.state.push_sender


def get_marker_repository(store: KVStore = Depends(get_kv_store)) -> MarkerRepository:
    return MarkerRepository(store.markers)


def get_subscription_repository(store: KVStore = Depends(get_kv_store)) -> SubscriptionRepository:
    return SubscriptionRepository(store.subscriptions)


def get_user_flags(store: KVStore = Depends(get_kv_store)) -> UserFlagRepository:
    return UserFlagRepository(store.admin_users, store.banned_users)


def get_dispatcher(
    settings: Settings = Depends(get_settings),
    store: KVStore = Depends(get_kv_store),
    subscriptions: SubscriptionRepository = Depends(get_subscription_repository),
    sender: PushSender = Depends(get_push_sender),
) -> NotificationDispatcher:
    """Assemble the dispatcher with request-scoped repositories."""

    return NotificationDispatcher(settings, subscriptions, sender, notified=store.notified)


def get_importer(markers: MarkerRepository = Depends(get_marker_repository)) -> MarkerImporter:
    return MarkerImporter(markers)
