"""Key-value namespaces backing every repository."""

from __future__ import annotations

import json
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from loguru import logger
from redis import asyncio as redis_asyncio
from redis.exceptions import RedisError

from ptvalert.config import Settings
from ptvalert.utils.exceptions import StorageUnavailable


def _json_default(value: Any) -> Any:
    """Serialize values not supported by ``json`` out of the box."""

    if hasattr(value, "isoformat"):
        return value.isoformat()  # datetime and date objects
    if isinstance(value, set):
        return sorted(value)
    raise TypeError(f"Object of type {type(value)!r} is not JSON serializable")


def _dumps(value: Any) -> str:
    return json.dumps(value, default=_json_default)


class KVNamespace(ABC):
    """Asynchronous get/put/delete/list over one keyspace.

    Values are JSON documents. Backends raise ``StorageUnavailable`` when the
    underlying store cannot be reached; nothing here retries.
    """

    name: str

    @abstractmethod
    async def get(self, key: str) -> Any | None:
        ...

    @abstractmethod
    async def put(self, key: str, value: Any, *, ttl_seconds: int | None = None) -> None:
        ...

    @abstractmethod
    async def delete(self, key: str) -> None:
        ...

    @abstractmethod
    async def list_keys(self) -> list[str]:
        ...

    async def items(self) -> dict[str, Any]:
        """Return every key with its value, skipping keys that vanished mid-scan."""

        result: dict[str, Any] = {}
        for key in await self.list_keys():
            value = await self.get(key)
            if value is not None:
                result[key] = value
        return result


@dataclass
class _Entry:
    expires_at: float | None
    payload: str


class InMemoryKVNamespace(KVNamespace):
    """Process-local namespace for development and tests."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._lock = threading.Lock()
        self._local: dict[str, _Entry] = {}

    def _live_entry(self, key: str) -> _Entry | None:
        entry = self._local.get(key)
        if entry is None:
            return None
        if entry.expires_at is not None and entry.expires_at < time.time():
            self._local.pop(key, None)
            return None
        return entry

    async def get(self, key: str) -> Any | None:
        with self._lock:
            entry = self._live_entry(key)
            if entry is None:
                return None
            return json.loads(entry.payload)

    async def put(self, key: str, value: Any, *, ttl_seconds: int | None = None) -> None:
        payload = _dumps(value)
        with self._lock:
            expires_at = time.time() + ttl_seconds if ttl_seconds else None
            self._local[key] = _Entry(expires_at=expires_at, payload=payload)

    async def delete(self, key: str) -> None:
        with self._lock:
            self._local.pop(key, None)

    async def list_keys(self) -> list[str]:
        with self._lock:
            return [key for key in list(self._local.keys()) if self._live_entry(key) is not None]


class RedisKVNamespace(KVNamespace):
    """Namespace stored in Redis under ``<name>:<key>``."""

    def __init__(self, client: redis_asyncio.Redis, name: str) -> None:
        self.name = name
        self._redis = client

    def _compose(self, key: str) -> str:
        return f"{self.name}:{key}"

    def _unavailable(self, operation: str, exc: Exception) -> StorageUnavailable:
        logger.error("KV operation failed", namespace=self.name, operation=operation, error=str(exc))
        return StorageUnavailable(
            f"Storage unavailable during {operation}", {"namespace": self.name}
        )

    async def get(self, key: str) -> Any | None:
        try:
            value = await self._redis.get(self._compose(key))
        except (RedisError, OSError) as exc:
            raise self._unavailable("get", exc) from exc
        if value is None:
            return None
        return json.loads(value)

    async def put(self, key: str, value: Any, *, ttl_seconds: int | None = None) -> None:
        try:
            await self._redis.set(self._compose(key), _dumps(value), ex=ttl_seconds or None)
        except (RedisError, OSError) as exc:
            raise self._unavailable("put", exc) from exc

    async def delete(self, key: str) -> None:
        try:
            await self._redis.delete(self._compose(key))
        except (RedisError, OSError) as exc:
            raise self._unavailable("delete", exc) from exc

    async def list_keys(self) -> list[str]:
        # Cursor-based SCAN over the namespace prefix.
        prefix = self._compose("")
        keys: list[str] = []
        try:
            async for raw_key in self._redis.scan_iter(match=f"{prefix}*", count=100):
                keys.append(raw_key[len(prefix):])
        except (RedisError, OSError) as exc:
            raise self._unavailable("list", exc) from exc
        return keys


@dataclass
class KVStore:
    """The namespaces the service persists into."""

    markers: KVNamespace
    subscriptions: KVNamespace
    admin_users: KVNamespace
    banned_users: KVNamespace
    notified: KVNamespace
    client: redis_asyncio.Redis | None = None

    def namespaces(self) -> tuple[KVNamespace, ...]:
        return (self.markers, self.subscriptions, self.admin_users, self.banned_users, self.notified)

    async def close(self) -> None:
        if self.client is not None:
            await self.client.aclose()


def build_kv_store(settings: Settings) -> KVStore:
    """Create the namespaces for the configured backend."""

    names = (
        settings.MARKERS_NAMESPACE,
        settings.SUBSCRIPTIONS_NAMESPACE,
        settings.ADMIN_USERS_NAMESPACE,
        settings.BANNED_USERS_NAMESPACE,
        settings.NOTIFIED_NAMESPACE,
    )
    if settings.KV_BACKEND == "memory":
        return KVStore(*(InMemoryKVNamespace(name) for name in names))

    client = redis_asyncio.Redis.from_url(str(settings.REDIS_URL), decode_responses=True)
    return KVStore(*(RedisKVNamespace(client, name) for name in names), client=client)


__all__ = [
    "InMemoryKVNamespace",
    "KVNamespace",
    "KVStore",
    "RedisKVNamespace",
    "build_kv_store",
]
