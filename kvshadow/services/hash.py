"""Hash commands - HSET, HMSET, HGET, HMGET, HGETALL, HEXISTS, HDEL."""

from kvshadow.keys import LogicalKey, StructureKind
from kvshadow.repositories import HashRepository
from kvshadow.services.base import BaseCommands
from kvshadow.services.validation import (
    require,
    require_field_values,
    require_str,
    require_strings,
    require_value,
)


class HashCommands(BaseCommands):
    """Hashes mirrored one row per field."""

    kind = StructureKind.HASH
    _repo: HashRepository

    async def _restore(self, key: LogicalKey, previous: dict[str, str | None]) -> None:
        """Put fields back to their prior values, deleting ones that did not exist."""
        existed = {f: v for f, v in previous.items() if v is not None}
        missing = [f for f, v in previous.items() if v is None]
        if missing:
            await self._redis.hdel(key.cache_key, *missing)
        if existed:
            await self._redis.hset(key.cache_key, mapping=existed)

    async def hset(self, bucket: str, field: str, value: str) -> int:
        require("HSET", bucket, field, value)
        key = self._key(require_str("HSET", "key", bucket))
        field = require_str("HSET", "field", field)
        value = require_value("HSET", "value", value)

        def build(pipe) -> None:
            pipe.hget(key.cache_key, field)
            pipe.hset(key.cache_key, field, value)

        previous, added = await self._pipeline(key.cache_key, build)

        self._mirror(
            key,
            "HSET",
            lambda: self._repo.upsert(key.table, {field: value}),
            compensate=lambda: self._restore(key, {field: previous}),
        )
        return added

    async def hmset(self, bucket: str, field_values: dict[str, str] | list[str]) -> str:
        require("HMSET", bucket, field_values)
        key = self._key(require_str("HMSET", "key", bucket))
        mapping = require_field_values("HMSET", field_values)
        fields = list(mapping)

        def build(pipe) -> None:
            pipe.hmget(key.cache_key, fields)
            pipe.hset(key.cache_key, mapping=mapping)

        previous, _ = await self._pipeline(key.cache_key, build)

        self._mirror(
            key,
            "HMSET",
            lambda: self._repo.upsert(key.table, mapping),
            compensate=lambda: self._restore(key, dict(zip(fields, previous))),
        )
        return "OK"

    async def hget(self, bucket: str, field: str) -> str | None:
        require("HGET", bucket, field)
        key = self._key(require_str("HGET", "key", bucket))
        field = require_str("HGET", "field", field)

        value = await self._cache(key.cache_key, self._redis.hget(key.cache_key, field))
        if value is not None:
            return value

        value = await self._durable_read(key, lambda: self._repo.get(key.table, field))
        if value is not None:
            self._backfill(key, "HGET", lambda: self._redis.hsetnx(key.cache_key, field, value))
        return value

    async def hmget(self, bucket: str, fields: str | list[str]) -> list[str | None]:
        """Values aligned with `fields`; the durable store fills in what the cache misses."""
        require("HMGET", bucket, fields)
        key = self._key(require_str("HMGET", "key", bucket))
        fields = require_strings("HMGET", "fields", fields)

        values = await self._cache(key.cache_key, self._redis.hmget(key.cache_key, fields))
        missing = [f for f, v in zip(fields, values) if v is None]
        if not missing:
            return values

        stored = await self._durable_read(key, lambda: self._repo.get_many(key.table, missing), default={})
        if not stored:
            return values
        self._backfill(key, "HMGET", lambda: self._fill(key, stored))
        return [v if v is not None else stored.get(f) for f, v in zip(fields, values)]

    async def _fill(self, key: LogicalKey, stored: dict[str, str]) -> None:
        for field, value in stored.items():
            await self._redis.hsetnx(key.cache_key, field, value)

    async def hgetall(self, bucket: str) -> dict[str, str]:
        require("HGETALL", bucket)
        key = self._key(require_str("HGETALL", "key", bucket))

        values = await self._cache(key.cache_key, self._redis.hgetall(key.cache_key))
        if values:
            return values

        stored = await self._durable_read(key, lambda: self._repo.get_all(key.table), default={})
        if stored:
            self._backfill(key, "HGETALL", lambda: self._fill(key, stored))
        return stored

    async def hexists(self, bucket: str, field: str) -> int:
        require("HEXISTS", bucket, field)
        key = self._key(require_str("HEXISTS", "key", bucket))
        field = require_str("HEXISTS", "field", field)

        if await self._cache(key.cache_key, self._redis.hexists(key.cache_key, field)):
            return 1

        value = await self._durable_read(key, lambda: self._repo.get(key.table, field))
        if value is None:
            return 0
        self._backfill(key, "HEXISTS", lambda: self._redis.hsetnx(key.cache_key, field, value))
        return 1

    async def hdel(self, bucket: str, fields: str | list[str]) -> int:
        require("HDEL", bucket, fields)
        key = self._key(require_str("HDEL", "key", bucket))
        fields = require_strings("HDEL", "fields", fields)

        def build(pipe) -> None:
            pipe.hmget(key.cache_key, fields)
            pipe.hdel(key.cache_key, *fields)

        previous, removed = await self._pipeline(key.cache_key, build)
        existed = {f: v for f, v in zip(fields, previous) if v is not None}

        async def write() -> None:
            await self._repo.delete(key.table, fields)
            await self._repo.drop_table_if_empty(key.table)

        async def compensate() -> None:
            if existed:
                await self._redis.hset(key.cache_key, mapping=existed)

        self._mirror(key, "HDEL", write, compensate=compensate, create=False)
        return removed

    async def rehydrate(self, key: LogicalKey) -> bool:
        stored = await self._durable_read(key, lambda: self._repo.get_all(key.table), default={})
        if not stored:
            return False
        self._backfill(key, "EXISTS", lambda: self._fill(key, stored))
        return True
