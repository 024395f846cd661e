# tests/unit/infra/test_redis_session_store.py
"""
Unit tests for RedisSessionStore using fakeredis.

These tests cover what the shared contract suite cannot see:
- the key layout (hash + per-user index, key TTL)
- index cleanup by ``purge_expired``
- connectivity failures surfacing as StoreUnavailableError
"""

from __future__ import annotations

from datetime import timedelta

import fakeredis
import pytest
from authcore.infra.redis.redis_session_store import RedisSessionStore
from authcore.services._shared.errors import StoreUnavailableError


@pytest.fixture
def fake_redis():
    """Provide a fresh FakeRedis instance for each test."""
    r = fakeredis.FakeRedis()
    r.flushall()
    return r


@pytest.fixture
def store(fake_redis, clock):
    """Provide a RedisSessionStore backed by FakeRedis."""
    return RedisSessionStore(r=fake_redis, ttl=timedelta(days=7), clock=clock)


def test_create_writes_hash_index_and_ttl(store, fake_redis):
    record = store.create("user-1")

    h = fake_redis.hgetall(f"sess:{record.session_id}")
    assert h[b"user_id"] == b"user-1"
    assert float(h[b"expires_at"]) == pytest.approx(record.expires_at.timestamp())
    assert fake_redis.sismember("sess:u:user-1", record.session_id)

    ttl = fake_redis.ttl(f"sess:{record.session_id}")
    assert 0 < ttl <= int(timedelta(days=7).total_seconds())


def test_consume_removes_hash_and_index_entry(store, fake_redis):
    record = store.create("user-1")

    assert store.consume_if_present(record.session_id, "user-1") is True
    assert fake_redis.exists(f"sess:{record.session_id}") == 0
    assert not fake_redis.sismember("sess:u:user-1", record.session_id)


def test_purge_drops_index_entries_whose_hash_vanished(store, fake_redis):
    record = store.create("user-1")
    # Simulate the key TTL firing before any sweep
    fake_redis.delete(f"sess:{record.session_id}")

    assert store.purge_expired() == 1
    assert fake_redis.scard("sess:u:user-1") == 0


def test_list_active_skips_vanished_hashes(store, fake_redis):
    gone = store.create("user-1")
    kept = store.create("user-1")
    fake_redis.delete(f"sess:{gone.session_id}")

    assert [r.session_id for r in store.list_active("user-1")] == [kept.session_id]


def test_connection_failure_raises_store_unavailable(clock):
    server = fakeredis.FakeServer()
    server.connected = False
    store = RedisSessionStore(r=fakeredis.FakeRedis(server=server), clock=clock)

    with pytest.raises(StoreUnavailableError):
        store.create("user-1")
    with pytest.raises(StoreUnavailableError):
        store.consume_if_present("sid", "user-1")
    with pytest.raises(StoreUnavailableError):
        store.delete_all("user-1")
