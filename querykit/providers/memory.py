"""
MemoryProvider: fast in-memory store for items.
Data does not persist; this is the reference implementation of the query
semantics every other provider has to match.
"""

import logging
import secrets
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from ..constraints import QueryConstraints
from ..exceptions import RequiredError
from .base import Item, Provider, make_item, strip_id


def random_id() -> str:
    """Generate a random item id."""
    return secrets.token_hex(10)


class MemoryTable:
    """An individual in-memory collection of items, keyed by id."""

    def __init__(self):
        self._data: Dict[str, Dict[str, Any]] = {}

    def __len__(self) -> int:
        return len(self._data)

    def get_item(self, item_id: str) -> Optional[Item]:
        data = self._data.get(item_id)
        return None if data is None else make_item(item_id, data)

    def add_item(self, data: Mapping[str, Any]) -> str:
        item_id = random_id()
        while item_id in self._data:
            item_id = random_id()
        self._data[item_id] = strip_id(data)
        return item_id

    def set_item(self, item_id: str, data: Mapping[str, Any]) -> None:
        self._data[item_id] = strip_id(data)

    def update_item(self, item_id: str, updates: Mapping[str, Any]) -> None:
        existing = self._data.get(item_id)
        if existing is None:
            raise RequiredError(f"Item '{item_id}' does not exist")
        self._data[item_id] = {**existing, **strip_id(updates)}

    def delete_item(self, item_id: str) -> None:
        self._data.pop(item_id, None)

    def get_query(self, query: QueryConstraints) -> List[Item]:
        return [make_item(item_id, data) for item_id, data in query.transform(self._data.items())]

    def _writable_entries(self, query: QueryConstraints) -> List[Tuple[str, Dict[str, Any]]]:
        # Without a limit the order doesn't change which items are written.
        entries: Iterable = self._data.items()
        if query.limit is None:
            return list(query.filters.transform(entries))
        return list(query.transform(entries))

    def set_query(self, query: QueryConstraints, data: Mapping[str, Any]) -> int:
        entries = self._writable_entries(query)
        for item_id, _ in entries:
            self._data[item_id] = strip_id(data)
        return len(entries)

    def update_query(self, query: QueryConstraints, updates: Mapping[str, Any]) -> int:
        entries = self._writable_entries(query)
        for item_id, existing in entries:
            self._data[item_id] = {**existing, **strip_id(updates)}
        return len(entries)

    def delete_query(self, query: QueryConstraints) -> int:
        entries = self._writable_entries(query)
        for item_id, _ in entries:
            del self._data[item_id]
        return len(entries)


class MemoryProvider(Provider):
    """
    Provider that keeps every collection in memory.
    Queries are evaluated with `QueryConstraints.transform()` directly.
    """

    def __init__(self):
        self._tables: Dict[str, MemoryTable] = {}
        self.logger = logging.getLogger(__name__)

    def get_table(self, collection: str) -> MemoryTable:
        """Get the table for a collection (created on first use)."""
        table = self._tables.get(collection)
        if table is None:
            table = self._tables[collection] = MemoryTable()
            self.logger.debug(f"Created memory table: {collection}")
        return table

    async def get_item(self, collection: str, item_id: str) -> Optional[Item]:
        return self.get_table(collection).get_item(item_id)

    async def add_item(self, collection: str, data: Mapping[str, Any]) -> str:
        return self.get_table(collection).add_item(data)

    async def set_item(self, collection: str, item_id: str, data: Mapping[str, Any]) -> None:
        self.get_table(collection).set_item(item_id, data)

    async def update_item(self, collection: str, item_id: str, updates: Mapping[str, Any]) -> None:
        self.get_table(collection).update_item(item_id, updates)

    async def delete_item(self, collection: str, item_id: str) -> None:
        self.get_table(collection).delete_item(item_id)

    async def get_query(self, collection: str, query: QueryConstraints) -> List[Item]:
        return self.get_table(collection).get_query(query)

    async def set_query(self, collection: str, query: QueryConstraints, data: Mapping[str, Any]) -> int:
        return self.get_table(collection).set_query(query, data)

    async def update_query(self, collection: str, query: QueryConstraints, updates: Mapping[str, Any]) -> int:
        return self.get_table(collection).update_query(query, updates)

    async def delete_query(self, collection: str, query: QueryConstraints) -> int:
        return self.get_table(collection).delete_query(query)

    def reset(self) -> None:
        """Drop every table."""
        self._tables = {}
        self.logger.info("Memory provider reset")
