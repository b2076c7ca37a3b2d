"""List commands - LPUSH, LINDEX, LSET, RPOP."""

from loguru import logger
from redis.exceptions import RedisError, ResponseError

from kvshadow.errors import CacheFailure, ListIndexError
from kvshadow.keys import LogicalKey, StructureKind
from kvshadow.models import CACHE
from kvshadow.repositories import ListRepository
from kvshadow.services.base import BaseCommands
from kvshadow.services.validation import require, require_int, require_str, require_strings, require_value


class ListCommands(BaseCommands):
    """Lists mirrored as (sequence, value) rows; the head has the highest sequence."""

    kind = StructureKind.LIST
    _repo: ListRepository

    def __init__(self, *args, sequence_step: float = 1e-5, **kwargs):
        super().__init__(*args, **kwargs)
        self._step = sequence_step
        # Last sequence handed out per table, keeps pushes within one process ordered
        self._last_sequence: dict[str, float] = {}

    def _next_sequences(self, table: str, now: float, count: int) -> list[float]:
        last = self._last_sequence.get(table)
        base = now if last is None else max(now, last + self._step)
        sequences = [base + i * self._step for i in range(count)]
        self._last_sequence[table] = sequences[-1]
        return sequences

    async def lpush(self, bucket: str, values: str | list[str]) -> int:
        """Push values to the head, the last one becoming the new head."""
        require("LPUSH", bucket, values)
        key = self._key(require_str("LPUSH", "key", bucket))
        values = require_strings("LPUSH", "values", values)

        def build(pipe) -> None:
            pipe.time()
            pipe.lpush(key.cache_key, *values)

        (seconds, micros), length = await self._pipeline(key.cache_key, build)
        sequences = self._next_sequences(key.table, seconds + micros / 1_000_000, len(values))
        rows = list(zip(sequences, values))

        self._mirror(
            key,
            "LPUSH",
            lambda: self._repo.push(key.table, rows),
            compensate=lambda: self._redis.lpop(key.cache_key, len(values)),
        )
        return length

    async def lindex(self, bucket: str, index: int) -> str | None:
        require("LINDEX", bucket, index)
        key = self._key(require_str("LINDEX", "key", bucket))
        index = require_int("LINDEX", "index", index)

        value = await self._cache(key.cache_key, self._redis.lindex(key.cache_key, index))
        if value is not None:
            return value

        value = await self._durable_read(key, lambda: self._repo.value_at(key.table, index))
        if value is None:
            logger.debug("LINDEX {} {}: index not found", key.cache_key, index)
            return None
        self._tasks.spawn(self._reconcile(key))
        return value

    async def _reconcile(self, key: LogicalKey) -> None:
        """Bring the cached list in line with the durable one, head to tail.

        A position missing from the cache is appended at the tail; a position
        holding a different value gets the durable value inserted before it.
        """
        values = await self._durable_read(key, lambda: self._repo.values(key.table), default=[])
        try:
            for position, value in enumerate(values):
                current = await self._redis.lindex(key.cache_key, position)
                if current is None:
                    await self._redis.rpush(key.cache_key, value)
                elif current != value:
                    await self._redis.linsert(key.cache_key, "BEFORE", current, value)
        except RedisError as e:
            self.report(CACHE, f"LINDEX reconciliation: {e}", key.cache_key)
            return
        logger.debug("Reconciled {} with {} durable values", key.cache_key, len(values))

    async def lset(self, bucket: str, index: int, value: str) -> str:
        require("LSET", bucket, index, value)
        key = self._key(require_str("LSET", "key", bucket))
        index = require_int("LSET", "index", index)
        value = require_value("LSET", "value", value)

        previous = await self._cache(key.cache_key, self._redis.lindex(key.cache_key, index))
        try:
            await self._redis.lset(key.cache_key, index, value)
        except ResponseError as e:
            message = str(e).lower()
            if "index out of range" in message or "no such key" in message:
                raise ListIndexError() from e
            raise CacheFailure(str(e), key.cache_key) from e
        except RedisError as e:
            raise CacheFailure(str(e), key.cache_key) from e

        async def write() -> None:
            if not await self._repo.set_at(key.table, index, value):
                raise ListIndexError()

        async def compensate() -> None:
            if previous is not None:
                await self._redis.lset(key.cache_key, index, previous)

        self._mirror(key, "LSET", write, compensate=compensate)
        return "OK"

    async def rpop(self, bucket: str) -> str | None:
        require("RPOP", bucket)
        key = self._key(require_str("RPOP", "key", bucket))

        value = await self._cache(key.cache_key, self._redis.rpop(key.cache_key))
        if value is None:
            return None

        async def write() -> None:
            await self._repo.delete_tail(key.table)
            await self._repo.drop_table_if_empty(key.table)

        self._mirror(
            key,
            "RPOP",
            write,
            compensate=lambda: self._redis.rpush(key.cache_key, value),
            create=False,
        )
        return value

    async def rehydrate(self, key: LogicalKey) -> bool:
        values = await self._durable_read(key, lambda: self._repo.values(key.table), default=[])
        if not values:
            return False
        self._backfill(key, "EXISTS", lambda: self._redis.rpush(key.cache_key, *values))
        return True
