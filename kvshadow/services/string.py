"""String commands - SET, GET, INCR."""

from loguru import logger

from kvshadow.keys import LogicalKey, StructureKind
from kvshadow.repositories import StringRepository
from kvshadow.services.base import UNAVAILABLE, BaseCommands
from kvshadow.services.validation import require, require_str, require_value


class StringCommands(BaseCommands):
    """String values stored one row per identifier in a bucket table."""

    kind = StructureKind.STRING
    _repo: StringRepository

    async def set(self, bucket: str, identifier: str, value: str) -> str:
        require("SET", bucket, identifier, value)
        require_str("SET", "bucket", bucket)
        require_str("SET", "key", identifier)
        value = require_value("SET", "value", value)
        key = self._key(bucket, identifier)

        previous = await self._cache(key.cache_key, self._redis.set(key.cache_key, value, get=True))

        self._mirror(
            key,
            "SET",
            lambda: self._repo.upsert(key.table, identifier, value),
            compensate=lambda: self._restore(key, previous),
        )
        return "OK"

    async def _restore(self, key: LogicalKey, previous: str | None) -> None:
        if previous is None:
            await self._redis.delete(key.cache_key)
        else:
            await self._redis.set(key.cache_key, previous)

    async def get(self, bucket: str, identifier: str) -> str | None:
        require("GET", bucket, identifier)
        key = self._key(require_str("GET", "bucket", bucket), require_str("GET", "key", identifier))

        value = await self._cache(key.cache_key, self._redis.get(key.cache_key))
        if value is not None:
            return value

        value = await self._durable_read(key, lambda: self._repo.get(key.table, identifier))
        if value is not None:
            self._backfill(key, "GET", lambda: self._redis.set(key.cache_key, value, nx=True))
        return value

    async def incr(self, bucket: str, identifier: str) -> int:
        """Increment, seeding a cold cache from the durable value first."""
        require("INCR", bucket, identifier)
        key = self._key(require_str("INCR", "bucket", bucket), require_str("INCR", "key", identifier))

        latest = await self._durable_read(key, lambda: self._repo.get(key.table, identifier), failed=UNAVAILABLE)
        if latest is UNAVAILABLE:
            logger.warning("Durable value unavailable for {}, incrementing without seed", key.cache_key)
            value = await self._cache(key.cache_key, self._redis.incr(key.cache_key))
        else:
            seed = latest if latest is not None else "0"

            def build(pipe) -> None:
                pipe.set(key.cache_key, seed, nx=True)
                pipe.incr(key.cache_key)

            _, value = await self._pipeline(key.cache_key, build)

        self._mirror(
            key,
            "INCR",
            lambda: self._repo.upsert(key.table, identifier, str(value)),
            compensate=lambda: self._redis.decr(key.cache_key),
        )
        return value

    async def rehydrate(self, key: LogicalKey) -> bool:
        if key.identifier is None:
            return False
        value = await self._durable_read(key, lambda: self._repo.get(key.table, key.identifier))
        if value is None:
            return False
        self._backfill(key, "EXISTS", lambda: self._redis.set(key.cache_key, value, nx=True))
        return True

    async def purge(self, key: LogicalKey) -> None:
        """Delete the row, dropping the bucket table once it is empty."""
        if key.identifier is None:
            return
        await self._repo.delete(key.table, key.identifier)
        await self._repo.drop_table_if_empty(key.table)
