"""Tests for the options cache."""
from unittest.mock import patch

import pytest

from faceunlock.db.gateway import PersistenceGateway
from faceunlock.services.exceptions import PersistenceError
from faceunlock.services.options_service import OptionsCache


class TestOptionsInitialize:
    """Tests for loading the options table."""

    async def test__initialize__loads_rows_verbatim(
        self, gateway: PersistenceGateway, options_cache: OptionsCache,
    ) -> None:
        await gateway.insert("options", {"key": "livenessEnabled", "val": "true"})
        await gateway.insert("options", {"key": "camera", "val": "0"})

        await options_cache.initialize()

        assert [(o.key, o.val) for o in options_cache.list_options()] == [
            ("livenessEnabled", "true"),
            ("camera", "0"),
        ]
        assert options_cache.get_value_by_key("camera") == "0"

    async def test__initialize__propagates_persistence_error(
        self, gateway: PersistenceGateway, options_cache: OptionsCache,
    ) -> None:
        with patch.object(gateway, "select", side_effect=PersistenceError("no table")):
            with pytest.raises(PersistenceError):
                await options_cache.initialize()


class TestOptionsLookup:
    """Tests for key lookups."""

    async def test__get_by_key__unknown_returns_none(self, options_cache: OptionsCache) -> None:
        assert options_cache.get_by_key("missing") is None
        assert options_cache.get_value_by_key("missing") is None

    async def test__get_by_key__returns_copy(self, options_cache: OptionsCache) -> None:
        await options_cache.save_many({"theme": "dark"})

        entry = options_cache.get_by_key("theme")
        entry.val = "light"

        assert options_cache.get_value_by_key("theme") == "dark"


class TestSaveMany:
    """Tests for sequential upserts."""

    async def test__save_many__inserts_unknown_keys_with_gateway_ids(
        self, gateway: PersistenceGateway, options_cache: OptionsCache,
    ) -> None:
        errors = await options_cache.save_many({"a": "1", "b": "2"})

        assert errors == []
        rows = await gateway.select("options")
        assert {row["key"]: row["id"] for row in rows} == {
            o.key: o.id for o in options_cache.list_options()
        }

    async def test__save_many__same_value_is_noop(
        self, gateway: PersistenceGateway, options_cache: OptionsCache,
    ) -> None:
        """Unchanged values trigger no write and keep the old timestamp."""
        await options_cache.save_many({"threshold": "0.4"})
        before = options_cache.get_by_key("threshold")

        with patch.object(gateway, "update") as mock_update, \
                patch.object(gateway, "insert") as mock_insert:
            errors = await options_cache.save_many({"threshold": "0.4"})

        assert errors == []
        mock_update.assert_not_called()
        mock_insert.assert_not_called()
        assert options_cache.get_by_key("threshold") == before

    async def test__save_many__changed_value_updates_row_and_timestamp(
        self, gateway: PersistenceGateway, options_cache: OptionsCache,
    ) -> None:
        await options_cache.save_many({"threshold": "0.4"})
        before = options_cache.get_by_key("threshold")

        errors = await options_cache.save_many({"threshold": "0.5"})

        after = options_cache.get_by_key("threshold")
        assert errors == []
        assert after.id == before.id
        assert after.val == "0.5"
        assert after.last_time >= before.last_time
        rows = await gateway.select("options", ["key", "val"])
        assert rows == [{"key": "threshold", "val": "0.5"}]

    async def test__save_many__never_duplicates_a_key(
        self, gateway: PersistenceGateway, options_cache: OptionsCache,
    ) -> None:
        await options_cache.save_many({"k": "1"})
        await options_cache.save_many({"k": "2"})
        await options_cache.save_many({"k": "3"})

        rows = await gateway.select("options")
        assert len(rows) == 1
        assert rows[0]["val"] == "3"

    async def test__save_many__collects_errors_and_continues(
        self, gateway: PersistenceGateway, options_cache: OptionsCache,
    ) -> None:
        """A failing entry is reported; the other entries are still saved."""
        real_insert = gateway.insert

        async def flaky_insert(table, values):  # noqa: ANN001, ANN202
            if values["key"] == "bad":
                raise PersistenceError("constraint failed")
            return await real_insert(table, values)

        with patch.object(gateway, "insert", side_effect=flaky_insert):
            errors = await options_cache.save_many({"first": "1", "bad": "x", "last": "3"})

        assert len(errors) == 1
        assert "bad" in errors[0]
        assert "constraint failed" in errors[0]
        assert options_cache.get_value_by_key("first") == "1"
        assert options_cache.get_value_by_key("last") == "3"
        assert options_cache.get_by_key("bad") is None

    async def test__save_many__non_string_value_reported(
        self, options_cache: OptionsCache,
    ) -> None:
        errors = await options_cache.save_many({"count": 3, "name": "x"})

        assert len(errors) == 1
        assert "count" in errors[0]
        assert options_cache.get_by_key("count") is None
        assert options_cache.get_value_by_key("name") == "x"

    async def test__save_many__update_failure_keeps_cached_value(
        self, gateway: PersistenceGateway, options_cache: OptionsCache,
    ) -> None:
        await options_cache.save_many({"k": "old"})

        with patch.object(gateway, "update", side_effect=PersistenceError("locked")):
            errors = await options_cache.save_many({"k": "new"})

        assert len(errors) == 1
        assert options_cache.get_value_by_key("k") == "old"

    async def test__save_many__empty_mapping_returns_no_errors(
        self, options_cache: OptionsCache,
    ) -> None:
        assert await options_cache.save_many({}) == []

    async def test__save_many__unexpected_error_reported_and_batch_continues(
        self, gateway: PersistenceGateway, options_cache: OptionsCache,
    ) -> None:
        """Errors outside the gateway's own types are still collected per entry."""
        real_insert = gateway.insert

        async def broken_insert(table, values):  # noqa: ANN001, ANN202
            if values["key"] == "bad":
                raise RuntimeError("driver exploded")
            return await real_insert(table, values)

        with patch.object(gateway, "insert", side_effect=broken_insert):
            errors = await options_cache.save_many({"first": "1", "bad": "x", "last": "3"})

        assert len(errors) == 1
        assert "driver exploded" in errors[0]
        assert options_cache.get_value_by_key("first") == "1"
        assert options_cache.get_value_by_key("last") == "3"
        rows = await gateway.select("options", ["key"])
        assert [row["key"] for row in rows] == ["first", "last"]

    async def test__save_many__update_lands_on_entry_after_list_shift(
        self, gateway: PersistenceGateway, options_cache: OptionsCache,
    ) -> None:
        """The cache entry is found again after the write, not by its old position."""
        await options_cache.save_many({"a": "1", "b": "1"})
        real_update = gateway.update

        async def update_then_shift(table, values, where):  # noqa: ANN001, ANN202
            count = await real_update(table, values, where)
            # Another task drops "a" from the cache while this write is in flight
            options_cache._options.pop(0)
            return count

        with patch.object(gateway, "update", side_effect=update_then_shift):
            errors = await options_cache.save_many({"b": "2"})

        assert errors == []
        assert [(o.key, o.val) for o in options_cache.list_options()] == [("b", "2")]
