"""
Unit tests for RedisRefreshTokenStore using fakeredis.

These tests exercise the main flows:
- upsert + get, one record per device
- rotate (success, device move and consumed token)
- delete and delete_all_for_user
- purge_expired cleanup of index members

They use fakeredis.FakeRedis so they run entirely in-memory.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import fakeredis
import pytest

from auth_api.infra.redis import RedisRefreshTokenStore


def _now() -> datetime:
    """Return a timezone-aware UTC "now"."""
    return datetime.now(UTC)


def _future(seconds: int = 300) -> datetime:
    return _now() + timedelta(seconds=seconds)


@pytest.fixture
def fake_redis():
    """Provide a fresh FakeRedis instance for each test."""
    r = fakeredis.FakeRedis()
    r.flushall()
    return r


@pytest.fixture
def store(fake_redis):
    """Provide a RedisRefreshTokenStore backed by FakeRedis."""
    return RedisRefreshTokenStore(r=fake_redis)


def _upsert(store, token: str, *, user_id: str = "user-1", agent: str = "ua/1", seconds=300):
    return store.upsert_for_device(
        user_id=user_id, user_agent=agent, token=token, expires_at=_future(seconds)
    )


def test_upsert_and_get(store):
    """A stored record is readable by value and by device."""
    expires = _future(120)
    store.upsert_for_device(user_id="user-1", user_agent="ua/1", token="t1", expires_at=expires)

    view = store.get("t1")
    assert view is not None
    assert (view.user_id, view.user_agent) == ("user-1", "ua/1")
    assert view.expires_at == expires.replace(microsecond=0)
    assert store.find_for_device("user-1", "ua/1").token == "t1"


def test_upsert_same_device_replaces_previous_token(store, fake_redis):
    """A second upsert for the device drops the first token."""
    _upsert(store, "t1")
    _upsert(store, "t2")

    assert store.get("t1") is None
    assert [v.token for v in store.list_user_tokens("user-1")] == ["t2"]
    assert fake_redis.ttl("rt:t2") > 0


def test_rotate_replaces_presented_token(store):
    """Rotation consumes the old value and stores the new one."""
    _upsert(store, "t1")

    view = store.rotate(
        old_token="t1", user_id="user-1", user_agent="ua/1", token="t2", expires_at=_future()
    )

    assert view is not None and view.token == "t2"
    assert store.get("t1") is None
    assert store.find_for_device("user-1", "ua/1").token == "t2"


def test_rotate_moves_token_to_new_device(store):
    """Rotating from another device drops that device's token and frees the old slot."""
    _upsert(store, "ta", agent="ua/a")
    _upsert(store, "tb", agent="ua/b")

    store.rotate(old_token="ta", user_id="user-1", user_agent="ua/b", token="tn", expires_at=_future())

    assert store.get("tb") is None
    assert store.find_for_device("user-1", "ua/a") is None
    assert [(v.token, v.user_agent) for v in store.list_user_tokens("user-1")] == [("tn", "ua/b")]


def test_rotate_of_unknown_token_returns_none(store):
    assert (
        store.rotate(
            old_token="missing", user_id="user-1", user_agent="ua/1", token="t2", expires_at=_future()
        )
        is None
    )
    assert store.get("t2") is None


def test_delete_removes_record_and_device_index(store):
    _upsert(store, "t1")

    assert store.delete("t1") is True
    assert store.delete("t1") is False
    assert store.find_for_device("user-1", "ua/1") is None


def test_delete_all_for_user_keeps_other_users(store):
    _upsert(store, "a1", agent="ua/1")
    _upsert(store, "a2", agent="ua/2")
    _upsert(store, "b1", user_id="user-2")

    assert store.delete_all_for_user("user-1") == 2
    assert list(store.list_user_tokens("user-1")) == []
    assert store.get("b1") is not None


def test_purge_expired_removes_records_and_stale_members(store, fake_redis):
    """Records expired at ``now`` and index members without a hash are swept."""
    _upsert(store, "short", agent="ua/1", seconds=60)
    _upsert(store, "long", agent="ua/2", seconds=7200)
    _upsert(store, "gone", agent="ua/3", seconds=7200)
    fake_redis.delete("rt:gone")  # as if its TTL had fired

    removed = store.purge_expired(_now() + timedelta(hours=1))

    assert removed == 2
    assert store.get("short") is None
    assert fake_redis.sismember("rt:u:user-1", "gone") == 0
    assert [v.token for v in store.list_user_tokens("user-1")] == ["long"]
