#!/usr/bin/env python3
"""
Tests for MemoryProvider and the provider wrappers.
"""

import logging
from datetime import datetime

import pytest
import pytest_asyncio

from querykit.constraints import QueryConstraints
from querykit.exceptions import QueryKitError, RequiredError
from querykit.providers import (
    DebugProvider, MemoryProvider, ThroughProvider, create_provider, find_source_provider
)


def item_ids(items):
    return [item["id"] for item in items]


@pytest.fixture
def provider():
    """Provide a clean MemoryProvider."""
    return MemoryProvider()


@pytest_asyncio.fixture
async def populated(provider, typed_records):
    """MemoryProvider with typed records in the `things` collection."""
    for item_id, data in typed_records.items():
        await provider.set_item("things", item_id, data)
    return provider


class TestMemoryItems:
    """Test single item operations."""

    @pytest.mark.asyncio
    async def test_set_and_get(self, provider):
        """Items come back with their id merged in."""
        await provider.set_item("things", "a", {"num": 1})
        assert await provider.get_item("things", "a") == {"num": 1, "id": "a"}
        assert await provider.get_item("things", "missing") is None
        assert await provider.get_item("other", "a") is None

    @pytest.mark.asyncio
    async def test_id_is_not_stored(self, provider):
        """An `id` in the data doesn't override the item id."""
        await provider.set_item("things", "a", {"id": "b", "num": 1})
        assert await provider.get_item("things", "a") == {"num": 1, "id": "a"}

    @pytest.mark.asyncio
    async def test_add(self, provider):
        """add_item generates unique ids."""
        first = await provider.add_item("things", {"num": 1})
        second = await provider.add_item("things", {"num": 1})
        assert first != second
        assert (await provider.get_item("things", first))["num"] == 1

    @pytest.mark.asyncio
    async def test_update(self, provider):
        """update_item merges, and needs an existing item."""
        await provider.set_item("things", "a", {"num": 1, "type": "x"})
        await provider.update_item("things", "a", {"num": 2})
        assert await provider.get_item("things", "a") == {"num": 2, "type": "x", "id": "a"}

        with pytest.raises(RequiredError):
            await provider.update_item("things", "missing", {"num": 2})

    @pytest.mark.asyncio
    async def test_delete(self, provider):
        """Deleting works and is a no-op for missing items."""
        await provider.set_item("things", "a", {"num": 1})
        await provider.delete_item("things", "a")
        await provider.delete_item("things", "a")
        assert await provider.get_item("things", "a") is None

    @pytest.mark.asyncio
    async def test_reset(self, provider):
        """reset drops every collection."""
        await provider.set_item("things", "a", {"num": 1})
        provider.reset()
        assert await provider.get_item("things", "a") is None


class TestMemoryQueries:
    """Test query operations."""

    @pytest.mark.asyncio
    async def test_get_query(self, populated):
        """Queries filter, sort and limit."""
        query = QueryConstraints({"num>": 1}, "!num", 2)
        assert item_ids(await populated.get_query("things", query)) == ["w", "z"]

    @pytest.mark.asyncio
    async def test_query_by_id(self, populated):
        """The id field is queryable."""
        query = QueryConstraints({"id": ["x", "y"]}, "!id")
        assert item_ids(await populated.get_query("things", query)) == ["y", "x"]

    @pytest.mark.asyncio
    async def test_set_query(self, populated):
        """set_query replaces matching items."""
        count = await populated.set_query("things", QueryConstraints({"type": "x"}), {"done": True})
        assert count == 2
        assert await populated.get_item("things", "w") == {"done": True, "id": "w"}
        assert (await populated.get_item("things", "x"))["type"] == "y"

    @pytest.mark.asyncio
    async def test_update_query(self, populated):
        """update_query merges into matching items."""
        count = await populated.update_query("things", QueryConstraints({"type": "y"}), {"done": True})
        assert count == 2
        done = await populated.get_query("things", QueryConstraints({"done": True}, "id"))
        assert item_ids(done) == ["x", "z"]
        assert done[0]["num"] == 1

    @pytest.mark.asyncio
    async def test_delete_query_with_limit(self, populated):
        """Limited writes affect the first items in query order."""
        count = await populated.delete_query("things", QueryConstraints(None, "num", 2))
        assert count == 2
        assert item_ids(await populated.get_query("things", QueryConstraints())) == ["w", "z"]


class TestThroughProviders:
    """Test ThroughProvider, DebugProvider and the factory."""

    @pytest.mark.asyncio
    async def test_through_passes_calls(self, provider):
        """Calls reach the source provider."""
        through = ThroughProvider(provider)
        await through.set_item("things", "a", {"num": 1})
        assert await provider.get_item("things", "a") == {"num": 1, "id": "a"}
        assert await through.delete_query("things", QueryConstraints()) == 1

    def test_find_source_provider(self, provider):
        """The stack is searched by type."""
        stack = DebugProvider(ThroughProvider(provider))
        assert find_source_provider(stack, MemoryProvider) is provider
        assert find_source_provider(stack, DebugProvider) is stack
        with pytest.raises(QueryKitError):
            find_source_provider(ThroughProvider(DebugProvider(provider)), type(None))

    @pytest.mark.asyncio
    async def test_debug_logs_calls(self, provider, caplog):
        """Each call is logged at debug level."""
        debug = DebugProvider(provider)
        with caplog.at_level(logging.DEBUG, logger="querykit.providers.through"):
            await debug.set_item("things", "a", {"num": 1})
            await debug.get_query("things", QueryConstraints({"num>": 0}))
        messages = [r.getMessage() for r in caplog.records]
        assert "Set: things/a: {'num': 1}" in messages
        assert 'Get: things?"filters":{"num>":0}' in messages

    @pytest.mark.asyncio
    async def test_debug_logs_values_json_cannot_encode(self, provider, caplog):
        """Queries on datetime values still run and get logged."""
        when = datetime(2024, 1, 1)
        await provider.set_item("things", "a", {"when": when})
        await provider.set_item("things", "b", {"when": None})
        debug = DebugProvider(provider)
        query = QueryConstraints({"when": when})
        with caplog.at_level(logging.DEBUG, logger="querykit.providers.through"):
            assert item_ids(await debug.get_query("things", query)) == ["a"]
            assert await debug.update_query("things", query, {"seen": True}) == 1
            assert await debug.delete_query("things", query) == 1
        messages = [r.getMessage() for r in caplog.records]
        assert any(m.startswith("Get: things?") and "2024" in m for m in messages)
        assert not [r for r in caplog.records if r.levelno == logging.ERROR]

    @pytest.mark.asyncio
    async def test_debug_logs_and_reraises(self, provider, caplog):
        """Failures are logged at error level and re-raised."""
        debug = DebugProvider(provider)
        with caplog.at_level(logging.DEBUG, logger="querykit.providers.through"):
            with pytest.raises(RequiredError):
                await debug.update_item("things", "missing", {"num": 1})
        errors = [r for r in caplog.records if r.levelno == logging.ERROR]
        assert len(errors) == 1
        assert errors[0].getMessage().startswith("Error: Update: things/missing")

    def test_create_provider(self):
        """The factory builds providers by name."""
        assert isinstance(create_provider(), MemoryProvider)
        debug = create_provider("memory", debug=True)
        assert isinstance(debug, DebugProvider)
        assert isinstance(debug.source, MemoryProvider)

        with pytest.raises(ValueError):
            create_provider("postgres")
        with pytest.raises(ValueError):
            create_provider("sqlite")
