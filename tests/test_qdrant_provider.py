#!/usr/bin/env python3
"""
Tests for the Qdrant query backend and QdrantProvider (local in-memory mode).
"""

import pytest
from qdrant_client.models import (
    FieldCondition, Filter, IsNullCondition, MatchAny, MatchValue, Range
)

from querykit.constraints import FilterOperator, QueryConstraints
from querykit.exceptions import RequiredError
from querykit.providers.memory import MemoryProvider
from querykit.providers.qdrant_backend import QdrantQueryBackend
from querykit.providers.qdrant_provider import QdrantProvider, point_id


def item_ids(items):
    return [item["id"] for item in items]


@pytest.fixture
def qdrant_provider():
    """Provide a QdrantProvider backed by an in-process Qdrant."""
    provider = QdrantProvider(qdrant_path=":memory:")
    yield provider
    provider.close()


@pytest.fixture
def backend():
    return QdrantQueryBackend()


class TestQdrantQueryBackend:
    """Test converting filters to Qdrant prefilters."""

    def test_empty_filters(self, backend):
        """No filters means no Qdrant filter."""
        assert backend.convert(QueryConstraints(None, "num", 5)) is None

    def test_equality(self, backend):
        """IS uses match conditions; NOT has no prefilter."""
        result = backend.convert(QueryConstraints({"type": "x", "!flag": True}))
        assert result.must == [FieldCondition(key="type", match=MatchValue(value="x"))]
        assert result.must_not is None

    def test_numbers_use_ranges(self, backend):
        """Numeric equality matches integers and floats alike."""
        result = backend.convert(QueryConstraints({"num": 2}))
        assert result.must == [FieldCondition(key="num", range=Range(gte=2, lte=2))]

    def test_null(self, backend):
        """IS None becomes an is_null condition."""
        result = backend.convert(QueryConstraints({"meta.value": None}))
        condition = result.must[0]
        assert isinstance(condition, IsNullCondition)
        assert condition.is_null.key == "meta.value"

    def test_in(self, backend):
        """String lists use MatchAny; other lists use nested should filters."""
        result = backend.convert(QueryConstraints({"type": ["x", "y"], "num": [1, "2"]}))
        assert result.must[0] == FieldCondition(key="type", match=MatchAny(any=["x", "y"]))
        nested = result.must[1]
        assert isinstance(nested, Filter)
        assert nested.should == [
            FieldCondition(key="num", range=Range(gte=1, lte=1)),
            FieldCondition(key="num", match=MatchValue(value="2")),
        ]

    def test_comparisons(self, backend):
        """LT/LTE on numbers are ranges; GT/GTE have no prefilter."""
        result = backend.convert(QueryConstraints({"a<": 1, "b<=": 2, "c>": 3, "d>=": 4}))
        assert result.must == [
            FieldCondition(key="a", range=Range(lt=1)),
            FieldCondition(key="b", range=Range(lte=2)),
        ]

    def test_contains(self, backend):
        """CONTAINS matches any element of an array payload."""
        result = backend.convert(QueryConstraints({"tags[]": "odd", "scores[]": 1.5}))
        assert result.must == [
            FieldCondition(key="tags", match=MatchValue(value="odd")),
            FieldCondition(key="scores", range=Range(gte=1.5, lte=1.5)),
        ]

    @pytest.mark.parametrize("filters", [
        {"!type": "x"},
        {"!num": [1, 2]},
        {"num>": 3},
        {"num>=": 3},
        {"type<": "y"},
        {"num<": float("inf")},
        {"value": {"k": 1}},
        {"tags": []},
        {"num": [1, {"k": 1}]},
        {"tags[]": None},
        {"a[0]": 1},
    ])
    def test_no_prefilter(self, backend, filters):
        """Filters without a safe Qdrant condition leave the scroll unfiltered."""
        assert backend.convert(QueryConstraints(filters)) is None

    def test_supported_operators(self, backend):
        """Only operators whose Qdrant condition over-matches are converted."""
        supported = {op for op in FilterOperator if backend.supports_operator(op)}
        assert supported == {
            FilterOperator.IS, FilterOperator.IN, FilterOperator.CONTAINS,
            FilterOperator.LT, FilterOperator.LTE,
        }


class TestQdrantItems:
    """Test item operations."""

    @pytest.mark.asyncio
    async def test_set_get_update_delete(self, qdrant_provider):
        """Items round-trip through Qdrant payloads."""
        await qdrant_provider.set_item("things", "a", {"num": 1, "meta": {"x": "y"}})
        assert await qdrant_provider.get_item("things", "a") == {"num": 1, "meta": {"x": "y"}, "id": "a"}

        await qdrant_provider.update_item("things", "a", {"num": 2})
        assert await qdrant_provider.get_item("things", "a") == {"num": 2, "meta": {"x": "y"}, "id": "a"}

        await qdrant_provider.delete_item("things", "a")
        assert await qdrant_provider.get_item("things", "a") is None

    @pytest.mark.asyncio
    async def test_update_missing(self, qdrant_provider):
        """Updating a missing item raises RequiredError."""
        with pytest.raises(RequiredError):
            await qdrant_provider.update_item("things", "missing", {"num": 1})

    @pytest.mark.asyncio
    async def test_add(self, qdrant_provider):
        """add_item returns a new id."""
        item_id = await qdrant_provider.add_item("things", {"num": 1})
        assert await qdrant_provider.get_item("things", item_id) == {"num": 1, "id": item_id}

    def test_point_ids_are_stable(self):
        """Item ids map to the same point id every time."""
        assert point_id("a") == point_id("a")
        assert point_id("a") != point_id("b")

    def test_requires_location(self):
        """A path or url is needed."""
        with pytest.raises(ValueError):
            QdrantProvider()


class TestQdrantQueries:
    """Test queries over typed records."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("filters,expected", [
        ({"type": "x"}, {"w", "y"}),
        ({"!type": "x"}, {"x", "z"}),
        ({"type": ["x", "z"]}, {"w", "y"}),
        ({"num": [1, 4]}, {"w", "x"}),
        ({"!num": [1, 4]}, {"y", "z"}),
        ({"tags[]": "odd"}, {"w", "x"}),
        ({"num>": 2}, {"w", "z"}),
        ({"num>=": 2, "num<": 4}, {"y", "z"}),
        ({"id": "z"}, {"z"}),
        ({"type<": "y"}, {"w", "y"}),
    ])
    async def test_filters(self, qdrant_provider, typed_records, filters, expected):
        """Filters select the same items as in memory."""
        for item_id, data in typed_records.items():
            await qdrant_provider.set_item("things", item_id, data)
        items = await qdrant_provider.get_query("things", QueryConstraints(filters))
        assert set(item_ids(items)) == expected

    @pytest.mark.asyncio
    async def test_sorted_query(self, qdrant_provider, typed_records):
        """Sorting and limits are applied in query order."""
        for item_id, data in typed_records.items():
            await qdrant_provider.set_item("things", item_id, data)
        query = QueryConstraints({"num>": 1}, ["type", "!num"], 2)
        assert item_ids(await qdrant_provider.get_query("things", query)) == ["w", "y"]

        page = QueryConstraints(None, "num").after({"id": "y", "num": 2})
        assert item_ids(await qdrant_provider.get_query("things", page)) == ["z", "w"]

    @pytest.mark.asyncio
    async def test_unsorted_limit(self, qdrant_provider, typed_records):
        """Limits without sorts are applied by Qdrant."""
        for item_id, data in typed_records.items():
            await qdrant_provider.set_item("things", item_id, data)
        assert len(await qdrant_provider.get_query("things", QueryConstraints(None, None, 3))) == 3
        assert await qdrant_provider.get_query("things", QueryConstraints(None, None, 0)) == []

    @pytest.mark.asyncio
    async def test_query_writes(self, qdrant_provider, typed_records):
        """Query writes return counts and touch only matching items."""
        for item_id, data in typed_records.items():
            await qdrant_provider.set_item("things", item_id, data)

        assert await qdrant_provider.update_query("things", QueryConstraints({"type": "y"}), {"done": True}) == 2
        done = await qdrant_provider.get_query("things", QueryConstraints({"done": True}, "id"))
        assert item_ids(done) == ["x", "z"]
        assert done[1]["num"] == 3

        assert await qdrant_provider.set_query("things", QueryConstraints({"id": "w"}), {"num": 0}) == 1
        assert await qdrant_provider.get_item("things", "w") == {"num": 0, "id": "w"}

        assert await qdrant_provider.delete_query("things", QueryConstraints({"num<": 2})) == 2
        remaining = await qdrant_provider.get_query("things", QueryConstraints(None, "id"))
        assert item_ids(remaining) == ["y", "z"]


MIXED_RECORDS = {
    "a": {"num": [1, 100], "tags": ["odd"]},
    "b": {"num": 60, "tags": "odd"},
    "c": {"num": 2.5, "tags": ["even", "odd"]},
    "d": {"num": "60", "tags": []},
    "e": {"num": True, "tags": None},
    "f": {"num": None},
    "g": {"other": 1},
}

PARITY_FILTERS = [
    {"num>": 50},
    {"num<": 50},
    {"num>=": 60},
    {"num<=": 2.5},
    {"num": 100},
    {"num": 60},
    {"num": 2.5},
    {"num": "60"},
    {"num": True},
    {"num": None},
    {"!num": 60},
    {"num": [60, "60"]},
    {"!num": [1, 60]},
    {"num>": "5"},
    {"tags": "odd"},
    {"tags[]": "odd"},
    {"!tags[]": "odd"},
    {"tags": None},
    {"tags": ["odd", "even"]},
    {"id": ["a", "g"]},
]


class TestQdrantParity:
    """Test that Qdrant returns exactly what the memory provider returns."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("filters", PARITY_FILTERS)
    async def test_mixed_records(self, qdrant_provider, filters):
        """Array-valued and mixed-type fields match as in memory."""
        memory = MemoryProvider()
        for item_id, data in MIXED_RECORDS.items():
            await memory.set_item("things", item_id, data)
            await qdrant_provider.set_item("things", item_id, data)

        query = QueryConstraints(filters, "id")
        expected = item_ids(await memory.get_query("things", query))
        assert item_ids(await qdrant_provider.get_query("things", query)) == expected

    @pytest.mark.asyncio
    async def test_array_fields(self, qdrant_provider):
        """Array elements never satisfy scalar comparisons."""
        for item_id, data in MIXED_RECORDS.items():
            await qdrant_provider.set_item("things", item_id, data)

        async def ids(filters):
            return item_ids(await qdrant_provider.get_query("things", QueryConstraints(filters, "id")))

        assert await ids({"num": 100}) == []
        assert await ids({"num<": 50}) == ["c"]
        assert await ids({"tags": "odd"}) == ["b"]
        assert await ids({"tags[]": "odd"}) == ["a", "c"]
        assert await ids({"num>": 50}) == ["a", "b", "d", "e", "f", "g"]

    @pytest.mark.asyncio
    async def test_filtered_limit(self, qdrant_provider):
        """Limits apply after exact filtering."""
        for item_id, data in MIXED_RECORDS.items():
            await qdrant_provider.set_item("things", item_id, data)
        items = await qdrant_provider.get_query("things", QueryConstraints({"tags[]": "odd"}, None, 1))
        assert len(items) == 1
        assert items[0]["id"] in {"a", "c"}
