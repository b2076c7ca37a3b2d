"""Tests for DEL, EXISTS, RENAME, EXPIRE and the inventory."""

import duckdb
import pytest

from kvshadow import ValidationError
from kvshadow.repositories import ExpiryRepository, SchemaRepository


async def table_exists(db, table: str) -> bool:
    row = await db.fetchone("SELECT COUNT(*) FROM information_schema.tables WHERE table_name = ?", [table])
    return bool(row[0])


async def expiry_keys(db) -> list[str]:
    rows = await db.fetchall('SELECT "key" FROM "expiry" ORDER BY "key"')
    return [r[0] for r in rows]


class TestDelete:
    async def test_string_round_trip(self, client, redis):
        await client.set("users", "1", "alice")
        await client.drain()
        assert await client.get("users", "1") == "alice"

        assert await client.delete("str:users:1") == 1
        await client.drain()
        assert await client.get("users", "1") is None
        await redis.flushall()
        assert await client.get("users", "1") is None

    async def test_string_table_kept_while_rows_remain(self, client, db):
        await client.set("users", "1", "a")
        await client.set("users", "2", "b")
        await client.drain()
        await client.delete("str:users:1")
        await client.drain()
        assert await table_exists(db, "str_users")

    async def test_structure_table_dropped(self, client, db):
        await client.sadd("tags", "a")
        await client.lpush("queue", "job")
        await client.drain()
        assert await client.delete(["set:tags", "lst:queue"]) == 2
        await client.drain()
        assert not await table_exists(db, "set_tags")
        assert not await table_exists(db, "lst_queue")

    async def test_cold_key_still_purged(self, client, redis, db):
        await client.hset("profile", "a", "1")
        await client.drain()
        await redis.flushall()
        assert await client.delete("map:profile") == 0
        await client.drain()
        assert not await table_exists(db, "map_profile")

    async def test_unknown_keys_ignored(self, client, events):
        assert await client.delete(["plain", "nope:x"]) == 0
        await client.drain()
        assert events == []

    async def test_identifier_on_structure_keeps_table(self, client, redis, db):
        await client.lpush("key", ["a", "b"])
        await client.drain()
        assert await client.delete("lst:key:junk") == 0
        await client.drain()
        assert await table_exists(db, "lst_key")
        assert await redis.lrange("lst:key", 0, -1) == ["b", "a"]


class TestExists:
    async def test_cache_hit(self, client):
        await client.sadd("tags", "a")
        assert await client.exists("set:tags") == 1

    async def test_rehydrates_list(self, client, redis):
        await client.lpush("queue", ["a", "b", "c"])
        await client.drain()
        await redis.flushall()

        assert await client.exists("lst:queue") == 1
        await client.drain()
        assert await redis.lrange("lst:queue", 0, -1) == ["c", "b", "a"]

    async def test_rehydrates_string(self, client, redis):
        await client.set("users", "1", "alice")
        await client.drain()
        await redis.flushall()
        assert await client.exists("str:users:1") == 1
        await client.drain()
        assert await redis.get("str:users:1") == "alice"

    async def test_missing(self, client):
        assert await client.exists("zset:nothing") == 0
        assert await client.exists("unknown:thing") == 0

    async def test_identifier_on_structure_not_rehydrated(self, client, redis):
        await client.sadd("tags", "a")
        await client.drain()
        await redis.flushall()
        assert await client.exists("set:tags:bogus") == 0
        await client.drain()
        assert await redis.exists("set:tags:bogus") == 0
        assert await redis.exists("set:tags") == 0


class TestExpire:
    async def test_records_expiry(self, client, redis, db):
        await client.set("session", "abc", "token")
        assert await client.expire("str:session:abc", 60) == 1
        await client.drain()
        assert 0 < await redis.ttl("str:session:abc") <= 60
        assert await expiry_keys(db) == ["str:session:abc"]

    async def test_missing_key(self, client, db):
        assert await client.expire("str:session:none", 60) == 0
        await client.drain()
        assert not await table_exists(db, "expiry")

    async def test_seconds_must_be_integer(self, client):
        with pytest.raises(ValidationError):
            await client.expire("str:session:abc", "60")


class TestRename:
    async def test_hash_rename_moves_data_and_expiry(self, client, redis, db):
        await client.hmset("old", {"a": "1", "b": "2"})
        await client.expire("map:old", 300)
        await client.drain()

        assert await client.rename("map:old", "map:new") == "OK"
        await client.drain()

        assert await redis.hgetall("map:new") == {"a": "1", "b": "2"}
        assert not await table_exists(db, "map_old")
        rows = await db.fetchall('SELECT field, value FROM "map_new" ORDER BY field')
        assert rows == [("a", "1"), ("b", "2")]
        assert await expiry_keys(db) == ["map:new"]

    async def test_string_rename_across_buckets(self, client, redis):
        await client.set("users", "1", "alice")
        await client.drain()
        await client.rename("str:users:1", "str:admins:7")
        await client.drain()
        await redis.flushall()
        assert await client.get("admins", "7") == "alice"
        assert await client.get("users", "1") is None

    async def test_string_rename_identifier_only(self, client, db):
        await client.set("users", "1", "alice")
        await client.set("users", "2", "bob")
        await client.drain()
        await client.rename("str:users:1", "str:users:9")
        await client.drain()
        rows = await db.fetchall('SELECT "key", value FROM "str_users" ORDER BY "key"')
        assert rows == [("2", "bob"), ("9", "alice")]

    async def test_prefix_mismatch(self, client):
        with pytest.raises(ValidationError):
            await client.rename("map:a", "set:a")

    async def test_unknown_prefix(self, client):
        with pytest.raises(ValidationError):
            await client.rename("nope:a", "nope:b")

    async def test_shape_mismatch(self, client):
        with pytest.raises(ValidationError):
            await client.rename("str:users:1", "str:users")

    async def test_identifier_on_structure_rejected(self, client, db):
        await client.hset("a", "f", "1")
        await client.drain()
        with pytest.raises(ValidationError):
            await client.rename("map:a:x", "map:b:y")
        await client.drain()
        assert await table_exists(db, "map_a")
        assert not await table_exists(db, "map_b")

    async def test_durable_failure_rolls_back(self, client, redis, db, events, monkeypatch):
        await client.sadd("old", "m")
        await client.drain()

        async def broken(*args, **kwargs):
            raise duckdb.IOException("disk full")

        monkeypatch.setattr(ExpiryRepository, "rename_key", broken)
        await client.rename("set:old", "set:new")
        await client.drain()

        assert await redis.smembers("set:old") == {"m"}
        assert await redis.exists("set:new") == 0
        assert await table_exists(db, "set_old")
        assert not await table_exists(db, "set_new")
        assert events[0].key == ("set:old", "set:new")

    async def test_table_rename_failure_reported(self, client, redis, events, monkeypatch):
        await client.zadd("old", [1, "a"])
        await client.drain()

        async def broken(*args, **kwargs):
            raise duckdb.IOException("locked")

        monkeypatch.setattr(SchemaRepository, "rename_table", broken)
        await client.rename("zset:old", "zset:new")
        await client.drain()
        assert await redis.zscore("zset:old", "a") == 1.0
        assert [e.kind for e in events] == ["durable"]


class TestInventory:
    async def test_lists_tables(self, client, redis):
        await client.set("users", "1", "a")
        await client.sadd("tags", ["x", "y"])
        await client.expire("set:tags", 100)
        await client.drain()
        await redis.delete("set:tags")

        entries = {e.table: e for e in await client.inventory()}
        assert set(entries) == {"str_users", "set_tags"}
        assert entries["set_tags"].rows == 2
        assert entries["set_tags"].cached is False
        assert entries["str_users"].cached is None
        assert entries["set_tags"].to_dict()["key"] == "set:tags"
