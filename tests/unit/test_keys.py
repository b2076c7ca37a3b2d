"""Tests for key/table mapping."""

import pytest

from kvshadow import ConfigError, KeyMapper, StructureKind, StructurePrefixes, ValidationError

PREFIXES = StructurePrefixes(string="str", list="lst", set="set", sorted_set="zset", hash="map")


@pytest.fixture
def mapper() -> KeyMapper:
    return KeyMapper(PREFIXES)


class TestMapKey:
    def test_string_key(self, mapper):
        key = mapper.map_key(StructureKind.STRING, "users", "42")
        assert key.cache_key == "str:users:42"
        assert key.table == "str_users"

    def test_structure_key(self, mapper):
        key = mapper.map_key(StructureKind.HASH, "profile")
        assert key.cache_key == "map:profile"
        assert key.table == "map_profile"

    def test_identifier_may_contain_delimiter(self, mapper):
        assert mapper.map_key(StructureKind.STRING, "urls", "http://x").cache_key == "str:urls:http://x"

    def test_bucket_with_delimiter_rejected(self, mapper):
        with pytest.raises(ValidationError):
            mapper.map_key(StructureKind.SET, "a:b")

    def test_empty_bucket_rejected(self, mapper):
        with pytest.raises(ValidationError):
            mapper.map_key(StructureKind.LIST, "")


class TestParse:
    def test_round_trip(self, mapper):
        key = mapper.parse("str:users:42")
        assert (key.kind, key.bucket, key.identifier) == (StructureKind.STRING, "users", "42")

    def test_structure(self, mapper):
        key = mapper.parse("zset:scores")
        assert key.kind is StructureKind.SORTED_SET
        assert key.identifier is None
        assert key.table == "zset_scores"

    def test_unknown_prefix(self, mapper):
        with pytest.raises(ConfigError):
            mapper.parse("nope:bucket")

    def test_no_delimiter(self, mapper):
        with pytest.raises(ValidationError):
            mapper.parse("plain")

    def test_empty_bucket(self, mapper):
        with pytest.raises(ValidationError):
            mapper.parse("lst:")

    @pytest.mark.parametrize("cache_key", ["lst:key:junk", "set:tags:bogus", "zset:scores:x", "map:a:x", "lst:key:"])
    def test_identifier_on_structure_rejected(self, mapper, cache_key):
        with pytest.raises(ValidationError):
            mapper.parse(cache_key)

    def test_string_identifier_keeps_delimiters(self, mapper):
        assert mapper.parse("str:urls:http://x").identifier == "http://x"


class TestFromTable:
    def test_known_table(self, mapper):
        key = mapper.from_table("lst_queue")
        assert key.kind is StructureKind.LIST
        assert key.cache_key == "lst:queue"

    def test_bucket_with_underscore(self, mapper):
        assert mapper.from_table("map_user_profile").bucket == "user_profile"

    def test_foreign_table(self, mapper):
        assert mapper.from_table("expiry") is None
