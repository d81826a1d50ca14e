"""Tests for push subscription and user flag storage."""
from __future__ import annotations

import hashlib

import pytest

from ptvalert.services.subscriptions import endpoint_hash
from ptvalert.utils.exceptions import ValidationError

ENDPOINT = "https://push.example/abc"


def test_endpoint_hash_is_stable_sha256() -> None:
    assert endpoint_hash(ENDPOINT) == hashlib.sha256(ENDPOINT.encode("utf-8")).hexdigest()
    assert endpoint_hash(ENDPOINT) == endpoint_hash(ENDPOINT)
    assert endpoint_hash(ENDPOINT) != endpoint_hash(ENDPOINT + "d")


@pytest.mark.asyncio
async def test_save_same_endpoint_overwrites(subscriptions_repo) -> None:
    first = await subscriptions_repo.save(
        {"subscription": {"endpoint": ENDPOINT, "keys": {"p256dh": "old", "auth": "a"}}}
    )
    second = await subscriptions_repo.save(
        {"subscription": {"endpoint": ENDPOINT, "keys": {"p256dh": "new", "auth": "b"}}, "userId": "u-7"}
    )

    stored = await subscriptions_repo.list_all()
    assert list(stored) == [first["id"]]
    assert second["id"] == first["id"]
    assert stored[first["id"]]["subscription"]["keys"]["p256dh"] == "new"
    assert stored[first["id"]]["userId"] == "u-7"
    assert stored[first["id"]]["createdAt"] == first["createdAt"]


@pytest.mark.asyncio
async def test_save_defaults_user_to_anonymous(subscriptions_repo) -> None:
    record = await subscriptions_repo.save({"subscription": {"endpoint": ENDPOINT}})

    assert record["userId"] == "anonymous"
    assert record["id"] == endpoint_hash(ENDPOINT)
    assert record["createdAt"]


@pytest.mark.asyncio
async def test_save_with_explicit_id(subscriptions_repo) -> None:
    record = await subscriptions_repo.save({"subscription": {"endpoint": ENDPOINT}}, subscription_id="legacy-1")

    assert record["id"] == "legacy-1"
    assert list(await subscriptions_repo.list_all()) == ["legacy-1"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [{}, {"subscription": None}, {"subscription": {}}, {"subscription": {"endpoint": ""}}],
)
async def test_save_requires_endpoint(subscriptions_repo, payload) -> None:
    with pytest.raises(ValidationError):
        await subscriptions_repo.save(payload)


@pytest.mark.asyncio
async def test_remove_by_endpoint(subscriptions_repo) -> None:
    await subscriptions_repo.save({"subscription": {"endpoint": ENDPOINT}})
    await subscriptions_repo.save({"subscription": {"endpoint": "https://push.example/other"}})

    removed_id = await subscriptions_repo.remove_by_endpoint(ENDPOINT)

    remaining = await subscriptions_repo.list_all()
    assert removed_id not in remaining
    assert list(remaining) == [endpoint_hash("https://push.example/other")]


@pytest.mark.asyncio
async def test_remove_unknown_endpoint_is_noop(subscriptions_repo) -> None:
    await subscriptions_repo.remove_by_endpoint("https://push.example/never")

    assert await subscriptions_repo.list_all() == {}


@pytest.mark.asyncio
async def test_admin_flag_lifecycle(user_flags) -> None:
    assert not await user_flags.is_admin("u-1")

    await user_flags.set_admin("u-1")
    assert await user_flags.is_admin("u-1")

    await user_flags.clear_admin("u-1")
    assert not await user_flags.is_admin("u-1")


@pytest.mark.asyncio
async def test_admin_flag_accepts_legacy_string(user_flags) -> None:
    await user_flags.admins.put("u-legacy", "true")

    assert await user_flags.is_admin("u-legacy")


@pytest.mark.asyncio
async def test_ban_and_unban(user_flags) -> None:
    info = await user_flags.ban("u-2", reason="Spam")

    assert info["reason"] == "Spam"
    assert info["bannedBy"] == "admin"
    assert await user_flags.ban_info("u-2") == info

    await user_flags.unban("u-2")
    assert await user_flags.ban_info("u-2") is None


@pytest.mark.asyncio
async def test_flags_require_user_id(user_flags) -> None:
    with pytest.raises(ValidationError):
        await user_flags.set_admin("")
