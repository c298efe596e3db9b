#!/usr/bin/env python3
"""
QdrantProvider: store items as payload-only points in Qdrant collections.
Qdrant narrows each query with a prefilter; exact filtering, sorting and
limiting happen in memory over the scrolled points.
"""

import logging
import uuid
from typing import Any, List, Mapping, Optional, Set

from qdrant_client import QdrantClient
from qdrant_client.models import Filter, PointIdsList, PointStruct

from ..constraints import QueryConstraints
from ..exceptions import RequiredError
from .base import Item, Provider, make_item, strip_id
from .memory import random_id
from .qdrant_backend import QdrantQueryBackend

# Namespace for deriving point ids from item ids.
ITEM_NAMESPACE = uuid.UUID("6f1c7a52-3b0e-4d8f-9a43-2c5e8b71d0a9")

SCROLL_PAGE_SIZE = 256


def point_id(item_id: str) -> str:
    """Qdrant point id for an item id."""
    return str(uuid.uuid5(ITEM_NAMESPACE, item_id))


class QdrantProvider(Provider):
    """
    Provider backed by Qdrant.
    Points have no vectors; the payload holds the item data plus its id.
    """

    def __init__(self,
                 qdrant_path: Optional[str] = None,
                 qdrant_url: Optional[str] = None,
                 qdrant_api_key: Optional[str] = None):
        """
        Initialize Qdrant provider.

        Args:
            qdrant_path: Path to local Qdrant storage (":memory:" for in-process)
            qdrant_url: URL for remote Qdrant (Docker or cloud)
            qdrant_api_key: API key for Qdrant cloud
        """
        if qdrant_url:
            if qdrant_api_key:
                self.client = QdrantClient(url=qdrant_url, api_key=qdrant_api_key)
            else:
                self.client = QdrantClient(url=qdrant_url)
        elif qdrant_path == ":memory:":
            self.client = QdrantClient(location=":memory:")
        elif qdrant_path:
            self.client = QdrantClient(path=qdrant_path)
        else:
            raise ValueError("Must provide either qdrant_path or qdrant_url")

        self.backend = QdrantQueryBackend()
        self.logger = logging.getLogger(__name__)
        self._collections: Set[str] = set()

    def _ensure_collection(self, collection: str) -> str:
        """Ensure Qdrant collection exists"""
        if collection in self._collections:
            return collection

        collections = self.client.get_collections().collections
        if collection not in [c.name for c in collections]:
            self.client.create_collection(collection_name=collection, vectors_config={})
            self.logger.info(f"Created Qdrant collection: {collection}")

        self._collections.add(collection)
        return collection

    def _get_payload(self, collection: str, item_id: str) -> Optional[dict]:
        points = self.client.retrieve(
            collection_name=collection,
            ids=[point_id(item_id)],
            with_payload=True
        )
        return points[0].payload if points else None

    def _write(self, collection: str, item_id: str, data: Mapping[str, Any]) -> None:
        self.client.upsert(
            collection_name=collection,
            points=[
                PointStruct(
                    id=point_id(item_id),
                    vector={},
                    payload=make_item(item_id, data)
                )
            ]
        )

    def _scroll(self, collection: str, scroll_filter: Optional[Filter] = None,
                limit: Optional[int] = None) -> List[Item]:
        """Read every point matching a filter (up to `limit`)."""
        items: List[Item] = []
        offset = None
        while limit is None or len(items) < limit:
            page_size = SCROLL_PAGE_SIZE if limit is None else min(SCROLL_PAGE_SIZE, limit - len(items))
            points, offset = self.client.scroll(
                collection_name=collection,
                scroll_filter=scroll_filter,
                limit=page_size,
                offset=offset,
                with_payload=True,
                with_vectors=False
            )
            items.extend(dict(point.payload) for point in points)
            if offset is None:
                break
        return items

    def _query_items(self, collection: str, query: QueryConstraints) -> List[Item]:
        """Get the items matching a query, in query order."""
        if not query.filters.size and not query.sorts.size:
            return [] if query.limit == 0 else self._scroll(collection, None, query.limit)

        # The Qdrant filter only narrows the scroll; exact matching runs here.
        scroll_filter = self.backend.convert(query)
        if scroll_filter is None:
            self.logger.debug(f"No Qdrant prefilter, scanning all of {collection}")
        return list(query.transform(self._scroll(collection, scroll_filter)))

    # Items

    async def get_item(self, collection: str, item_id: str) -> Optional[Item]:
        payload = self._get_payload(self._ensure_collection(collection), item_id)
        return None if payload is None else make_item(item_id, payload)

    async def add_item(self, collection: str, data: Mapping[str, Any]) -> str:
        collection = self._ensure_collection(collection)
        item_id = random_id()
        while self._get_payload(collection, item_id) is not None:
            item_id = random_id()
        self._write(collection, item_id, strip_id(data))
        return item_id

    async def set_item(self, collection: str, item_id: str, data: Mapping[str, Any]) -> None:
        self._write(self._ensure_collection(collection), item_id, strip_id(data))

    async def update_item(self, collection: str, item_id: str, updates: Mapping[str, Any]) -> None:
        collection = self._ensure_collection(collection)
        existing = self._get_payload(collection, item_id)
        if existing is None:
            raise RequiredError(f"Item '{item_id}' does not exist in {collection}")
        self._write(collection, item_id, {**strip_id(existing), **strip_id(updates)})

    async def delete_item(self, collection: str, item_id: str) -> None:
        self.client.delete(
            collection_name=self._ensure_collection(collection),
            points_selector=PointIdsList(points=[point_id(item_id)])
        )

    # Queries

    async def get_query(self, collection: str, query: QueryConstraints) -> List[Item]:
        return self._query_items(self._ensure_collection(collection), query)

    async def set_query(self, collection: str, query: QueryConstraints, data: Mapping[str, Any]) -> int:
        collection = self._ensure_collection(collection)
        items = self._query_items(collection, query)
        for item in items:
            self._write(collection, item["id"], strip_id(data))
        return len(items)

    async def update_query(self, collection: str, query: QueryConstraints, updates: Mapping[str, Any]) -> int:
        collection = self._ensure_collection(collection)
        items = self._query_items(collection, query)
        for item in items:
            self._write(collection, item["id"], {**strip_id(item), **strip_id(updates)})
        return len(items)

    async def delete_query(self, collection: str, query: QueryConstraints) -> int:
        collection = self._ensure_collection(collection)
        items = self._query_items(collection, query)
        if items:
            self.client.delete(
                collection_name=collection,
                points_selector=PointIdsList(points=[point_id(item["id"]) for item in items])
            )
            self.logger.info(f"Deleted {len(items)} items from {collection}")
        return len(items)

    def close(self):
        """Close the Qdrant client"""
        self.client.close()
