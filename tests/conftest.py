"""Pytest fixtures for API and service tests."""

import json
from collections.abc import Generator
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from ptvalert.config import Settings
from ptvalert.main import create_app
from ptvalert.services.markers import MarkerRepository
from ptvalert.services.notification_service import NotificationDispatcher, PushSender
from ptvalert.services.subscriptions import SubscriptionRepository
from ptvalert.services.users import UserFlagRepository
from ptvalert.utils.exceptions import PermanentDeliveryFailure, TransientDeliveryFailure
from ptvalert.utils.kv import KVStore, build_kv_store


class FakePushSender(PushSender):
    """Record deliveries and fail for configured endpoints."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, dict[str, Any]]] = []
        self.gone: set[str] = set()
        self.failing: set[str] = set()

    def send(self, subscription_info: dict[str, Any], data: str) -> None:
        endpoint = subscription_info["endpoint"]
        if endpoint in self.gone:
            raise PermanentDeliveryFailure("push service says gone", status_code=410)
        if endpoint in self.failing:
            raise TransientDeliveryFailure("push service unavailable", status_code=503)
        self.sent.append((endpoint, json.loads(data)))

    def endpoints(self) -> list[str]:
        return [endpoint for endpoint, _ in self.sent]


@pytest.fixture()
def settings() -> Settings:
    return Settings(
        _env_file=None,
        KV_BACKEND="memory",
        VAPID_PUBLIC_KEY="test-public-key",
        VAPID_PRIVATE_KEY="test-private-key",
        LOG_LEVEL="WARNING",
    )


@pytest.fixture()
def store(settings: Settings) -> KVStore:
    return build_kv_store(settings)


@pytest.fixture()
def push_sender() -> FakePushSender:
    return FakePushSender()


@pytest.fixture()
def markers_repo(store: KVStore) -> MarkerRepository:
    return MarkerRepository(store.markers)


@pytest.fixture()
def subscriptions_repo(store: KVStore) -> SubscriptionRepository:
    return SubscriptionRepository(store.subscriptions)


@pytest.fixture()
def user_flags(store: KVStore) -> UserFlagRepository:
    return UserFlagRepository(store.admin_users, store.banned_users)


@pytest.fixture()
def dispatcher(
    settings: Settings, subscriptions_repo: SubscriptionRepository, push_sender: FakePushSender, store: KVStore
) -> NotificationDispatcher:
    return NotificationDispatcher(settings, subscriptions_repo, push_sender, notified=store.notified)


@pytest.fixture()
def app(settings: Settings, store: KVStore, push_sender: FakePushSender) -> FastAPI:
    application = create_app(settings)
    application.state.kv_store = store
    application.state.push_sender = push_sender
    return application


@pytest.fixture()
def client(app: FastAPI) -> Generator[TestClient, None, None]:
    with TestClient(app) as test_client:
        yield test_client
