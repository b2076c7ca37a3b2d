"""Tests for SET, GET, INCR."""

import duckdb
import pytest

from kvshadow import CacheFailure, ValidationError
from kvshadow.repositories import StringRepository


async def durable_value(db, table: str, identifier: str):
    row = await db.fetchone(f'SELECT value FROM "{table}" WHERE "key" = ?', [identifier])
    return row[0] if row else None


class TestSet:
    async def test_set_writes_both_stores(self, client, redis, db):
        assert await client.set("users", "1", "alice") == "OK"
        await client.drain()
        assert await redis.get("str:users:1") == "alice"
        assert await durable_value(db, "str_users", "1") == "alice"

    async def test_numbers_are_stringified(self, client, db):
        await client.set("counters", "a", 5)
        await client.drain()
        assert await durable_value(db, "str_counters", "a") == "5"

    async def test_validation_before_io(self, client, redis):
        with pytest.raises(ValidationError):
            await client.set("users", None, "x")
        with pytest.raises(ValidationError):
            await client.set("us:ers", "1", "x")
        assert await redis.dbsize() == 0

    async def test_durable_failure_restores_previous(self, client, redis, events, monkeypatch):
        await client.set("users", "1", "alice")
        await client.drain()

        async def broken(*args, **kwargs):
            raise duckdb.IOException("disk full")

        monkeypatch.setattr(StringRepository, "upsert", broken)
        assert await client.set("users", "1", "bob") == "OK"
        await client.drain()

        assert await redis.get("str:users:1") == "alice"
        assert [e.kind for e in events] == ["durable"]
        assert events[0].key == "str:users:1"

    async def test_durable_failure_removes_new_key(self, client, redis, events, monkeypatch):
        async def broken(*args, **kwargs):
            raise duckdb.IOException("disk full")

        monkeypatch.setattr(StringRepository, "upsert", broken)
        await client.set("users", "2", "carol")
        await client.drain()
        assert await redis.get("str:users:2") is None
        assert len(events) == 1

    async def test_cache_error_is_raised(self, client, redis):
        await redis.lpush("str:users:3", "x")
        with pytest.raises(CacheFailure):
            await client.set("users", "3", "y")


class TestGet:
    async def test_cache_hit(self, client):
        await client.set("users", "1", "alice")
        assert await client.get("users", "1") == "alice"

    async def test_read_through_and_backfill(self, client, redis):
        await client.set("users", "1", "alice")
        await client.drain()
        await redis.flushall()

        assert await client.get("users", "1") == "alice"
        await client.drain()
        assert await redis.get("str:users:1") == "alice"

    async def test_missing_everywhere(self, client, events):
        assert await client.get("nobody", "1") is None
        assert events == []

    async def test_durable_read_failure_reports(self, client, events, monkeypatch):
        async def broken(*args, **kwargs):
            raise duckdb.IOException("unreadable")

        monkeypatch.setattr(StringRepository, "get", broken)
        assert await client.get("users", "1") is None
        assert [e.kind for e in events] == ["durable"]


class TestIncr:
    async def test_fresh_counter(self, client, db):
        assert await client.incr("hits", "home") == 1
        await client.drain()
        assert await client.incr("hits", "home") == 2
        await client.drain()
        assert await durable_value(db, "str_hits", "home") == "2"

    async def test_seeds_cold_cache_from_durable(self, client, redis):
        await client.set("hits", "home", "41")
        await client.drain()
        await redis.flushall()

        assert await client.incr("hits", "home") == 42

    async def test_durable_failure_decrements(self, client, redis, events, monkeypatch):
        await client.incr("hits", "home")
        await client.drain()

        async def broken(*args, **kwargs):
            raise duckdb.IOException("disk full")

        monkeypatch.setattr(StringRepository, "upsert", broken)
        assert await client.incr("hits", "home") == 2
        await client.drain()
        assert await redis.get("str:hits:home") == "1"
        assert len(events) == 1
