"""Set commands - SADD, SREM, SMEMBERS, SISMEMBER, SCARD."""

from kvshadow.keys import LogicalKey, StructureKind
from kvshadow.repositories import SetRepository
from kvshadow.services.base import BaseCommands
from kvshadow.services.validation import require, require_str, require_strings


class SetCommands(BaseCommands):
    """Sets mirrored one row per member."""

    kind = StructureKind.SET
    _repo: SetRepository

    async def sadd(self, bucket: str, members: str | list[str]) -> int:
        require("SADD", bucket, members)
        key = self._key(require_str("SADD", "key", bucket))
        members = require_strings("SADD", "members", members)

        def build(pipe) -> None:
            pipe.smismember(key.cache_key, members)
            pipe.sadd(key.cache_key, *members)

        present, added = await self._pipeline(key.cache_key, build)
        new = list(dict.fromkeys(m for m, seen in zip(members, present) if not seen))

        self._mirror(
            key,
            "SADD",
            lambda: self._repo.add(key.table, members),
            compensate=(lambda: self._redis.srem(key.cache_key, *new)) if new else None,
        )
        return added

    async def srem(self, bucket: str, members: str | list[str]) -> int:
        require("SREM", bucket, members)
        key = self._key(require_str("SREM", "key", bucket))
        members = require_strings("SREM", "members", members)

        def build(pipe) -> None:
            pipe.smismember(key.cache_key, members)
            pipe.srem(key.cache_key, *members)

        present, removed = await self._pipeline(key.cache_key, build)
        gone = list(dict.fromkeys(m for m, seen in zip(members, present) if seen))

        async def write() -> None:
            await self._repo.remove(key.table, members)
            await self._repo.drop_table_if_empty(key.table)

        self._mirror(
            key,
            "SREM",
            write,
            compensate=(lambda: self._redis.sadd(key.cache_key, *gone)) if gone else None,
            create=False,
        )
        return removed

    async def smembers(self, bucket: str) -> set[str]:
        require("SMEMBERS", bucket)
        key = self._key(require_str("SMEMBERS", "key", bucket))

        members = await self._cache(key.cache_key, self._redis.smembers(key.cache_key))
        if members:
            return members

        stored = await self._durable_read(key, lambda: self._repo.members(key.table), default=[])
        if stored:
            self._backfill(key, "SMEMBERS", lambda: self._redis.sadd(key.cache_key, *stored))
        return set(stored)

    async def sismember(self, bucket: str, member: str) -> int:
        require("SISMEMBER", bucket, member)
        key = self._key(require_str("SISMEMBER", "key", bucket))
        member = require_str("SISMEMBER", "member", member)

        if await self._cache(key.cache_key, self._redis.sismember(key.cache_key, member)):
            return 1

        found = await self._durable_read(key, lambda: self._repo.is_member(key.table, member), default=False)
        if found:
            self._backfill(key, "SISMEMBER", lambda: self._redis.sadd(key.cache_key, member))
        return int(bool(found))

    async def scard(self, bucket: str) -> int:
        require("SCARD", bucket)
        key = self._key(require_str("SCARD", "key", bucket))

        count = await self._cache(key.cache_key, self._redis.scard(key.cache_key))
        if count:
            return count

        stored = await self._durable_read(key, lambda: self._repo.members(key.table), default=[])
        if stored:
            self._backfill(key, "SCARD", lambda: self._redis.sadd(key.cache_key, *stored))
        return len(stored)

    async def rehydrate(self, key: LogicalKey) -> bool:
        stored = await self._durable_read(key, lambda: self._repo.members(key.table), default=[])
        if not stored:
            return False
        self._backfill(key, "EXISTS", lambda: self._redis.sadd(key.cache_key, *stored))
        return True
