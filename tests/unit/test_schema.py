"""Tests for the schema provisioner and durable repositories."""

import asyncio

import pytest

from kvshadow import StructureKind
from kvshadow.models import ScoreBound
from kvshadow.repositories import ListRepository, SchemaRepository, SortedSetRepository, StringRepository


@pytest.fixture
def schema(db) -> SchemaRepository:
    return SchemaRepository(db)


class TestSchema:
    async def test_concurrent_creation_is_idempotent(self, schema):
        await asyncio.gather(*(schema.ensure_table("set_tags", StructureKind.SET) for _ in range(10)))
        assert await schema.tables() == ["set_tags"]

    async def test_drop_if_empty_keeps_rows(self, db, schema):
        strings = StringRepository(db, schema)
        await strings.ensure_table("str_users")
        await strings.upsert("str_users", "1", "alice")
        assert await schema.drop_table_if_empty("str_users") is False
        assert "str_users" in await schema.tables()

    async def test_drop_if_empty_drops(self, schema):
        await schema.ensure_table("map_profile", StructureKind.HASH)
        assert await schema.drop_table_if_empty("map_profile") is True
        assert "map_profile" not in await schema.tables()

    async def test_drop_if_empty_missing_table(self, schema):
        assert await schema.drop_table_if_empty("lst_nothing") is False

    async def test_rename(self, schema):
        await schema.ensure_table("zset_old", StructureKind.SORTED_SET)
        await schema.rename_table("zset_old", "zset_new")
        assert await schema.tables() == ["zset_new"]


class TestStringRepository:
    async def test_upsert_overwrites(self, db, schema):
        repo = StringRepository(db, schema)
        await repo.ensure_table("str_users")
        await repo.upsert("str_users", "1", "alice")
        await repo.upsert("str_users", "1", "bob")
        assert await repo.get("str_users", "1") == "bob"

    async def test_move_across_tables(self, db, schema):
        repo = StringRepository(db, schema)
        await repo.ensure_table("str_a")
        await repo.ensure_table("str_b")
        await repo.upsert("str_a", "1", "v")
        await repo.move("str_a", "str_b", "1", "2")
        assert await repo.get("str_a", "1") is None
        assert await repo.get("str_b", "2") == "v"


class TestListPositions:
    @pytest.fixture
    async def repo(self, db, schema) -> ListRepository:
        repo = ListRepository(db, schema)
        await repo.ensure_table("lst_key")
        # Pushed in order 300, name1, name2, 400; the head is the last push
        await repo.push("lst_key", [(1.0, "300"), (2.0, "name1"), (3.0, "name2"), (4.0, "400")])
        return repo

    async def test_head_and_tail(self, repo):
        assert await repo.value_at("lst_key", 0) == "400"
        assert await repo.value_at("lst_key", 1) == "name2"
        assert await repo.value_at("lst_key", -1) == "300"
        assert await repo.value_at("lst_key", -2) == "name1"

    async def test_out_of_range(self, repo):
        assert await repo.value_at("lst_key", 4) is None
        assert await repo.value_at("lst_key", -5) is None

    async def test_values_head_first(self, repo):
        assert await repo.values("lst_key") == ["400", "name2", "name1", "300"]

    async def test_set_at(self, repo):
        assert await repo.set_at("lst_key", -1, "299") == 1
        assert await repo.value_at("lst_key", 3) == "299"
        assert await repo.set_at("lst_key", 10, "x") == 0

    async def test_delete_tail(self, repo):
        await repo.delete_tail("lst_key")
        assert await repo.value_at("lst_key", -1) == "name1"


class TestSortedSetRanks:
    @pytest.fixture
    async def repo(self, db, schema) -> SortedSetRepository:
        repo = SortedSetRepository(db, schema)
        await repo.ensure_table("zset_players")
        await repo.add("zset_players", [(10, "anna"), (20, "bob"), (30, "john"), (30, "krull")])
        return repo

    async def test_rank_ties_by_member(self, repo):
        assert await repo.rank("zset_players", "anna") == 0
        assert await repo.rank("zset_players", "john") == 2
        assert await repo.rank("zset_players", "krull") == 3
        assert await repo.rank("zset_players", "ghost") is None

    async def test_increment_is_additive(self, repo):
        await repo.increment("zset_players", 5, "anna")
        await repo.increment("zset_players", 2.5, "new")
        assert await repo.score("zset_players", "anna") == 15.0
        assert await repo.score("zset_players", "new") == 2.5

    async def test_range_exclusive_bounds(self, repo):
        rows = await repo.range_by_score("zset_players", ScoreBound(10, exclusive=True), ScoreBound(float("inf")))
        assert [member for member, _ in rows] == ["bob", "john", "krull"]

    async def test_range_reverse_with_limit(self, repo):
        rows = await repo.range_by_score(
            "zset_players", ScoreBound(float("-inf")), ScoreBound(30), reverse=True, offset=1, count=2
        )
        assert rows == [("john", 30.0), ("bob", 20.0)]
