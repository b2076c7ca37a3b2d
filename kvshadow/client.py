"""Client facade - wires the cache, the durable store and the command families."""

from redis import asyncio as aioredis
from loguru import logger

from kvshadow.config import ShadowConfig
from kvshadow.keys import KeyMapper, StructureKind
from kvshadow.models import TableInventory
from kvshadow.repositories import (
    Database,
    connect,
    ExpiryRepository,
    HashRepository,
    ListRepository,
    SchemaRepository,
    SetRepository,
    SortedSetRepository,
    StringRepository,
)
from kvshadow.services import (
    BackgroundTasks,
    ErrorHandler,
    GenericCommands,
    HashCommands,
    ListCommands,
    SetCommands,
    SortedSetCommands,
    StringCommands,
)

# `set` is shadowed by ShadowClient.set
Members = set[str]


class ShadowClient:
    """Cache client whose writes are mirrored into a relational shadow.

    Every command returns the cache's answer. Durable writes run in the
    background; call `drain()` to wait for them.
    """

    def __init__(
        self,
        redis: aioredis.Redis,
        db: Database,
        config: ShadowConfig,
        on_error: ErrorHandler | None = None,
    ):
        self.redis = redis
        self.db = db
        self.config = config
        self.mapper = KeyMapper(config.prefixes)
        self.tasks = BackgroundTasks()

        # Repositories
        self._schema = SchemaRepository(db)
        self._string_repo = StringRepository(db, self._schema)
        self._expiry_repo = ExpiryRepository(db, self._schema, config.expiry_table)

        # Command families (with injected repos)
        common = {"mapper": self.mapper, "tasks": self.tasks, "on_error": on_error}
        self.strings = StringCommands(redis, self._string_repo, **common)
        self.lists = ListCommands(
            redis, ListRepository(db, self._schema), sequence_step=config.list_sequence_step, **common
        )
        self.sets = SetCommands(redis, SetRepository(db, self._schema), **common)
        self.sorted_sets = SortedSetCommands(redis, SortedSetRepository(db, self._schema), **common)
        self.hashes = HashCommands(redis, HashRepository(db, self._schema), **common)
        self.keys = GenericCommands(
            redis,
            families={
                StructureKind.STRING: self.strings,
                StructureKind.LIST: self.lists,
                StructureKind.SET: self.sets,
                StructureKind.SORTED_SET: self.sorted_sets,
                StructureKind.HASH: self.hashes,
            },
            schema=self._schema,
            expiry=self._expiry_repo,
            strings=self._string_repo,
            **common,
        )
        logger.info("ShadowClient initialized (db={})", db.path)

    @classmethod
    def connect(cls, config: ShadowConfig | None = None, on_error: ErrorHandler | None = None) -> "ShadowClient":
        """Open both stores from configuration (environment settings by default)."""
        config = config or ShadowConfig.from_settings()
        redis = aioredis.from_url(config.redis_url, decode_responses=True)
        return cls(redis, connect(config.db_path), config, on_error)

    def key(self, kind: StructureKind, bucket: str, identifier: str | None = None) -> str:
        """Full cache key for a structure."""
        return self.mapper.map_key(kind, bucket, identifier).cache_key

    async def drain(self) -> None:
        """Wait for all outstanding durable writes and cache backfills."""
        await self.tasks.drain()

    async def close(self) -> None:
        await self.drain()
        await self.redis.aclose()
        self.db.close()
        logger.info("ShadowClient closed")

    async def __aenter__(self) -> "ShadowClient":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.close()

    # Strings

    async def set(self, bucket: str, key: str, value: str) -> str:
        return await self.strings.set(bucket, key, value)

    async def get(self, bucket: str, key: str) -> str | None:
        return await self.strings.get(bucket, key)

    async def incr(self, bucket: str, key: str) -> int:
        return await self.strings.incr(bucket, key)

    # Lists

    async def lpush(self, key: str, values: str | list[str]) -> int:
        return await self.lists.lpush(key, values)

    async def lindex(self, key: str, index: int) -> str | None:
        return await self.lists.lindex(key, index)

    async def lset(self, key: str, index: int, value: str) -> str:
        return await self.lists.lset(key, index, value)

    async def rpop(self, key: str) -> str | None:
        return await self.lists.rpop(key)

    # Sets

    async def sadd(self, key: str, members: str | list[str]) -> int:
        return await self.sets.sadd(key, members)

    async def srem(self, key: str, members: str | list[str]) -> int:
        return await self.sets.srem(key, members)

    async def smembers(self, key: str) -> Members:
        return await self.sets.smembers(key)

    async def sismember(self, key: str, member: str) -> int:
        return await self.sets.sismember(key, member)

    async def scard(self, key: str) -> int:
        return await self.sets.scard(key)

    # Sorted sets

    async def zadd(self, key: str, score_members: list) -> int:
        return await self.sorted_sets.zadd(key, score_members)

    async def zincrby(self, key: str, increment: float, member: str) -> float:
        return await self.sorted_sets.zincrby(key, increment, member)

    async def zscore(self, key: str, member: str) -> float | None:
        return await self.sorted_sets.zscore(key, member)

    async def zrank(self, key: str, member: str) -> int | None:
        return await self.sorted_sets.zrank(key, member)

    async def zrangebyscore(self, key: str, min, max, withscores: bool = False, offset=None, count=None) -> list:
        return await self.sorted_sets.zrangebyscore(key, min, max, withscores, offset, count)

    async def zrevrangebyscore(self, key: str, max, min, withscores: bool = False, offset=None, count=None) -> list:
        return await self.sorted_sets.zrevrangebyscore(key, max, min, withscores, offset, count)

    # Hashes

    async def hset(self, key: str, field: str, value: str) -> int:
        return await self.hashes.hset(key, field, value)

    async def hmset(self, key: str, field_values: dict[str, str] | list[str]) -> str:
        return await self.hashes.hmset(key, field_values)

    async def hget(self, key: str, field: str) -> str | None:
        return await self.hashes.hget(key, field)

    async def hmget(self, key: str, fields: str | list[str]) -> list[str | None]:
        return await self.hashes.hmget(key, fields)

    async def hgetall(self, key: str) -> dict[str, str]:
        return await self.hashes.hgetall(key)

    async def hexists(self, key: str, field: str) -> int:
        return await self.hashes.hexists(key, field)

    async def hdel(self, key: str, fields: str | list[str]) -> int:
        return await self.hashes.hdel(key, fields)

    # Keys

    async def delete(self, keys: str | list[str]) -> int:
        return await self.keys.delete(keys)

    async def exists(self, key: str) -> int:
        return await self.keys.exists(key)

    async def rename(self, key: str, new_key: str) -> str:
        return await self.keys.rename(key, new_key)

    async def expire(self, key: str, seconds: int) -> int:
        return await self.keys.expire(key, seconds)

    async def inventory(self) -> list[TableInventory]:
        return await self.keys.inventory()
