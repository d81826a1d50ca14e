"""Utility helpers package."""

from ptvalert.utils.kv import InMemoryKVNamespace, KVNamespace, KVStore, RedisKVNamespace, build_kv_store

__all__ = ["InMemoryKVNamespace", "KVNamespace", "KVStore", "RedisKVNamespace", "build_kv_store"]
