"""Sorted-set commands - ZADD, ZINCRBY, ZSCORE, ZRANK and score ranges."""

from loguru import logger

from kvshadow.errors import ValidationError
from kvshadow.keys import LogicalKey, StructureKind
from kvshadow.repositories import SortedSetRepository
from kvshadow.services.base import UNAVAILABLE, BaseCommands
from kvshadow.services.validation import (
    parse_score_bound,
    require,
    require_int,
    require_number,
    require_score_members,
    require_str,
)


class SortedSetCommands(BaseCommands):
    """Sorted sets mirrored as (score, member) rows."""

    kind = StructureKind.SORTED_SET
    _repo: SortedSetRepository

    async def zadd(self, bucket: str, score_members: list) -> int:
        """Add or update members from a flat [score, member, ...] list. Returns members added."""
        require("ZADD", bucket, score_members)
        key = self._key(require_str("ZADD", "key", bucket))
        pairs = require_score_members("ZADD", score_members)
        mapping = {member: score for score, member in pairs}
        members = list(mapping)

        def build(pipe) -> None:
            pipe.zmscore(key.cache_key, members)
            pipe.zadd(key.cache_key, mapping)

        previous, added = await self._pipeline(key.cache_key, build)
        restore = {m: s for m, s in zip(members, previous) if s is not None}
        new = [m for m, s in zip(members, previous) if s is None]

        async def compensate() -> None:
            if new:
                await self._redis.zrem(key.cache_key, *new)
            if restore:
                await self._redis.zadd(key.cache_key, restore)

        self._mirror(key, "ZADD", lambda: self._repo.add(key.table, pairs), compensate=compensate)
        return added

    async def zincrby(self, bucket: str, increment: float, member: str) -> float:
        """Increment a member's score, seeding a cold cache from the durable score."""
        require("ZINCRBY", bucket, increment, member)
        key = self._key(require_str("ZINCRBY", "key", bucket))
        increment = require_number("ZINCRBY", "increment", increment)
        member = require_str("ZINCRBY", "member", member)

        latest = await self._durable_read(key, lambda: self._repo.score(key.table, member), failed=UNAVAILABLE)
        if latest is UNAVAILABLE or latest is None:
            if latest is UNAVAILABLE:
                logger.warning("Durable score unavailable for {} {}, incrementing without seed", key.cache_key, member)
            score = await self._cache(key.cache_key, self._redis.zincrby(key.cache_key, increment, member))
        else:

            def build(pipe) -> None:
                pipe.zadd(key.cache_key, {member: latest}, nx=True)
                pipe.zincrby(key.cache_key, increment, member)

            _, score = await self._pipeline(key.cache_key, build)

        self._mirror(
            key,
            "ZINCRBY",
            lambda: self._repo.increment(key.table, increment, member),
            compensate=lambda: self._redis.zincrby(key.cache_key, -increment, member),
        )
        return score

    async def zscore(self, bucket: str, member: str) -> float | None:
        require("ZSCORE", bucket, member)
        key = self._key(require_str("ZSCORE", "key", bucket))
        member = require_str("ZSCORE", "member", member)

        score = await self._cache(key.cache_key, self._redis.zscore(key.cache_key, member))
        if score is not None:
            return score

        score = await self._durable_read(key, lambda: self._repo.score(key.table, member))
        if score is not None:
            self._backfill(key, "ZSCORE", lambda: self._redis.zadd(key.cache_key, {member: score}, nx=True))
        return score

    async def zrank(self, bucket: str, member: str) -> int | None:
        """0-based rank by ascending score, ties broken by member."""
        require("ZRANK", bucket, member)
        key = self._key(require_str("ZRANK", "key", bucket))
        member = require_str("ZRANK", "member", member)

        rank = await self._cache(key.cache_key, self._redis.zrank(key.cache_key, member))
        if rank is not None:
            return rank

        rank = await self._durable_read(key, lambda: self._repo.rank(key.table, member))
        if rank is not None:
            self._tasks.spawn(self._backfill_all(key, "ZRANK"))
        return rank

    async def zrangebyscore(
        self,
        bucket: str,
        min: float | str,
        max: float | str,
        withscores: bool = False,
        offset: int | None = None,
        count: int | None = None,
    ) -> list:
        """Members with min <= score <= max, lowest first. Bounds accept `(`, `-inf`, `+inf`."""
        return await self._range("ZRANGEBYSCORE", bucket, min, max, False, withscores, offset, count)

    async def zrevrangebyscore(
        self,
        bucket: str,
        max: float | str,
        min: float | str,
        withscores: bool = False,
        offset: int | None = None,
        count: int | None = None,
    ) -> list:
        """Members with max >= score >= min, highest first."""
        return await self._range("ZREVRANGEBYSCORE", bucket, min, max, True, withscores, offset, count)

    async def _range(
        self,
        command: str,
        bucket: str,
        min: float | str,
        max: float | str,
        reverse: bool,
        withscores: bool,
        offset: int | None,
        count: int | None,
    ) -> list:
        require(command, bucket, min, max)
        key = self._key(require_str(command, "key", bucket))
        low = parse_score_bound(command, "min", min)
        high = parse_score_bound(command, "max", max)
        if (offset is None) != (count is None):
            raise ValidationError(f"{command} `offset` and `count` must be given together")
        if offset is not None:
            offset = require_int(command, "offset", offset)
            count = require_int(command, "count", count)

        if reverse:
            call = self._redis.zrevrangebyscore(
                key.cache_key, high.to_cache_arg(), low.to_cache_arg(), offset, count, withscores=withscores
            )
        else:
            call = self._redis.zrangebyscore(
                key.cache_key, low.to_cache_arg(), high.to_cache_arg(), offset, count, withscores=withscores
            )
        result = await self._cache(key.cache_key, call)
        if result:
            return [(member, float(score)) for member, score in result] if withscores else result

        rows = await self._durable_read(
            key, lambda: self._repo.range_by_score(key.table, low, high, reverse, offset, count), default=[]
        )
        if not rows:
            return []
        self._tasks.spawn(self._backfill_all(key, command))
        if withscores:
            return rows
        return [member for member, _ in rows]

    async def _backfill_all(self, key: LogicalKey, command: str) -> None:
        """Load the whole durable sorted set into the cache; runs as a background task."""
        pairs = await self._durable_read(key, lambda: self._repo.pairs(key.table), default=[])
        if pairs:
            await self._run_backfill(key, command, self._restore(key, pairs))

    def _restore(self, key: LogicalKey, pairs: list[tuple[float, str]]):
        mapping = {member: score for score, member in pairs}
        return lambda: self._redis.zadd(key.cache_key, mapping, nx=True)

    async def rehydrate(self, key: LogicalKey) -> bool:
        pairs = await self._durable_read(key, lambda: self._repo.pairs(key.table), default=[])
        if not pairs:
            return False
        self._backfill(key, "EXISTS", self._restore(key, pairs))
        return True

