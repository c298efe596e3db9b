#!/usr/bin/env python3
"""
SQLiteProvider: persistent store for items in a SQLite database.
Each collection is a table of `(id, data)` rows with the item data as JSON.
Queries are translated to SQL by SQLiteQueryBackend; queries it can't
express are evaluated in memory over the whole collection.
"""

import json
import logging
import os
import re
from typing import Any, Dict, List, Mapping, Optional, Set, Tuple

from ..constraints import QueryConstraints
from ..exceptions import RequiredError, StorageError, UnsupportedQueryError
from .base import Item, Provider, make_item, strip_id
from .db_helpers import aconnect, with_connection
from .memory import random_id
from .sqlite_backend import SQLiteQueryBackend

_COLLECTION_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

Entry = Tuple[str, Dict[str, Any]]


def _dumps(data: Mapping[str, Any]) -> str:
    return json.dumps(data, ensure_ascii=False)


class SQLiteProvider(Provider):
    """Provider that stores collections as tables in a SQLite database."""

    def __init__(self, db_path: str):
        """
        Initialize SQLite provider

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = db_path
        self.backend = SQLiteQueryBackend()
        self.logger = logging.getLogger(__name__)
        self._tables: Set[str] = set()

    async def initialize(self):
        """Ensure the database directory exists and the database opens"""
        directory = os.path.dirname(self.db_path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        async with aconnect(self.db_path, writer=True):
            pass
        self.logger.info(f"SQLite provider ready: {self.db_path}")

    async def close(self):
        """Close database connection (no-op, connections are per call)"""
        pass  # Each call opens and closes its own connection

    async def _ensure_table(self, conn, collection: str) -> str:
        """Create the table for a collection if needed and return its name."""
        if not _COLLECTION_NAME.match(collection):
            raise StorageError(f"Invalid collection name: {collection!r}")
        if collection not in self._tables:
            await conn.execute(f"""
                CREATE TABLE IF NOT EXISTS "{collection}" (
                    id TEXT PRIMARY KEY,
                    data TEXT NOT NULL
                )
            """)
            self._tables.add(collection)
            self.logger.debug(f"Ensured table: {collection}")
        return collection

    async def _get_data(self, conn, table: str, item_id: str) -> Optional[Dict[str, Any]]:
        cursor = await conn.execute(f'SELECT data FROM "{table}" WHERE id = ?', (item_id,))
        row = await cursor.fetchone()
        return None if row is None else json.loads(row[0])

    async def _write_data(self, conn, table: str, item_id: str, data: Mapping[str, Any]) -> None:
        # Upsert keeps the rowid, so an item keeps its place in insertion order.
        await conn.execute(f"""
            INSERT INTO "{table}" (id, data) VALUES (?, ?)
            ON CONFLICT(id) DO UPDATE SET data = excluded.data
        """, (item_id, _dumps(data)))

    async def _query_entries(self, conn, table: str, query: QueryConstraints) -> List[Entry]:
        """Get the `(id, data)` entries matching a query, in query order."""
        try:
            sql, params = self.backend.convert(query).select(table)
        except UnsupportedQueryError as e:
            self.logger.warning(f"Evaluating query in memory for {table}: {e}")
            cursor = await conn.execute(f'SELECT id, data FROM "{table}" ORDER BY rowid')
            rows = await cursor.fetchall()
            return list(query.transform([(row[0], json.loads(row[1])) for row in rows]))

        cursor = await conn.execute(sql, params)
        rows = await cursor.fetchall()
        return [(row[0], json.loads(row[1])) for row in rows]

    # ============================================================================
    # Items
    # ============================================================================

    @with_connection(writer=False)
    async def get_item(self, conn, collection: str, item_id: str) -> Optional[Item]:
        table = await self._ensure_table(conn, collection)
        data = await self._get_data(conn, table, item_id)
        return None if data is None else make_item(item_id, data)

    @with_connection(writer=True)
    async def add_item(self, conn, collection: str, data: Mapping[str, Any]) -> str:
        table = await self._ensure_table(conn, collection)
        item_id = random_id()
        while await self._get_data(conn, table, item_id) is not None:
            item_id = random_id()
        await self._write_data(conn, table, item_id, strip_id(data))
        return item_id

    @with_connection(writer=True)
    async def set_item(self, conn, collection: str, item_id: str, data: Mapping[str, Any]) -> None:
        table = await self._ensure_table(conn, collection)
        await self._write_data(conn, table, item_id, strip_id(data))

    @with_connection(writer=True)
    async def update_item(self, conn, collection: str, item_id: str, updates: Mapping[str, Any]) -> None:
        table = await self._ensure_table(conn, collection)
        existing = await self._get_data(conn, table, item_id)
        if existing is None:
            raise RequiredError(f"Item '{item_id}' does not exist in {collection}")
        await self._write_data(conn, table, item_id, {**existing, **strip_id(updates)})

    @with_connection(writer=True)
    async def delete_item(self, conn, collection: str, item_id: str) -> None:
        table = await self._ensure_table(conn, collection)
        await conn.execute(f'DELETE FROM "{table}" WHERE id = ?', (item_id,))

    # ============================================================================
    # Queries
    # ============================================================================

    @with_connection(writer=False)
    async def get_query(self, conn, collection: str, query: QueryConstraints) -> List[Item]:
        table = await self._ensure_table(conn, collection)
        entries = await self._query_entries(conn, table, query)
        return [make_item(item_id, data) for item_id, data in entries]

    @with_connection(writer=True)
    async def set_query(self, conn, collection: str, query: QueryConstraints, data: Mapping[str, Any]) -> int:
        table = await self._ensure_table(conn, collection)
        entries = await self._query_entries(conn, table, query)
        payload = _dumps(strip_id(data))
        await conn.executemany(
            f'UPDATE "{table}" SET data = ? WHERE id = ?',
            [(payload, item_id) for item_id, _ in entries]
        )
        return len(entries)

    @with_connection(writer=True)
    async def update_query(self, conn, collection: str, query: QueryConstraints, updates: Mapping[str, Any]) -> int:
        table = await self._ensure_table(conn, collection)
        entries = await self._query_entries(conn, table, query)
        updates = strip_id(updates)
        await conn.executemany(
            f'UPDATE "{table}" SET data = ? WHERE id = ?',
            [(_dumps({**existing, **updates}), item_id) for item_id, existing in entries]
        )
        return len(entries)

    @with_connection(writer=True)
    async def delete_query(self, conn, collection: str, query: QueryConstraints) -> int:
        table = await self._ensure_table(conn, collection)
        entries = await self._query_entries(conn, table, query)
        await conn.executemany(
            f'DELETE FROM "{table}" WHERE id = ?',
            [(item_id,) for item_id, _ in entries]
        )
        if entries:
            self.logger.info(f"Deleted {len(entries)} items from {collection}")
        return len(entries)
