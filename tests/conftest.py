"""Shared fixtures: a fake cache, an in-memory durable store and a wired client."""

import fakeredis
import pytest

from kvshadow import ShadowClient, ShadowConfig
from kvshadow.repositories import Database


@pytest.fixture
def config() -> ShadowConfig:
    return ShadowConfig(db_path=":memory:", redis_url="redis://localhost:6379/15")


@pytest.fixture
async def redis():
    client = fakeredis.FakeAsyncRedis(server=fakeredis.FakeServer(), decode_responses=True)
    yield client
    await client.aclose()


@pytest.fixture
def db():
    database = Database(":memory:")
    yield database
    database.close()


@pytest.fixture
def events() -> list:
    return []


@pytest.fixture
async def client(redis, db, config, events):
    shadow = ShadowClient(redis, db, config, on_error=events.append)
    yield shadow
    await shadow.drain()
