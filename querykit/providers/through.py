"""
Providers that wrap another (source) provider.
"""

import logging
from typing import Any, List, Mapping, Optional, Type, TypeVar

from ..constraints import QueryConstraints
from ..exceptions import QueryKitError
from .base import Item, Provider

P = TypeVar("P", bound=Provider)


class ThroughProvider(Provider):
    """Pass all reads and writes through to a source provider."""

    def __init__(self, source: Provider):
        self.source = source

    async def get_item(self, collection: str, item_id: str) -> Optional[Item]:
        return await self.source.get_item(collection, item_id)

    async def add_item(self, collection: str, data: Mapping[str, Any]) -> str:
        return await self.source.add_item(collection, data)

    async def set_item(self, collection: str, item_id: str, data: Mapping[str, Any]) -> None:
        await self.source.set_item(collection, item_id, data)

    async def update_item(self, collection: str, item_id: str, updates: Mapping[str, Any]) -> None:
        await self.source.update_item(collection, item_id, updates)

    async def delete_item(self, collection: str, item_id: str) -> None:
        await self.source.delete_item(collection, item_id)

    async def get_query(self, collection: str, query: QueryConstraints) -> List[Item]:
        return await self.source.get_query(collection, query)

    async def set_query(self, collection: str, query: QueryConstraints, data: Mapping[str, Any]) -> int:
        return await self.source.set_query(collection, query, data)

    async def update_query(self, collection: str, query: QueryConstraints, updates: Mapping[str, Any]) -> int:
        return await self.source.update_query(collection, query, updates)

    async def delete_query(self, collection: str, query: QueryConstraints) -> int:
        return await self.source.delete_query(collection, query)


def find_source_provider(provider: Provider, provider_type: Type[P]) -> P:
    """
    Find a specific provider in a stack of through providers.

    Raises:
        QueryKitError: If no provider of that type is in the stack
    """
    if isinstance(provider, provider_type):
        return provider
    if isinstance(provider, ThroughProvider):
        return find_source_provider(provider.source, provider_type)
    raise QueryKitError(f"Source provider {provider_type.__name__} not found")


def _item_key(collection: str, item_id: str) -> str:
    return f"{collection}/{item_id}"


def _query_key(collection: str, query: QueryConstraints) -> str:
    try:
        text = str(query)
    except (TypeError, ValueError):
        # Filter values that JSON can't encode (e.g. datetimes).
        text = repr(query)
    return f"{collection}?{text}"


class DebugProvider(ThroughProvider):
    """Provider that logs every operation on its source provider."""

    def __init__(self, source: Provider, logger: Optional[logging.Logger] = None):
        super().__init__(source)
        self.logger = logger or logging.getLogger(__name__)

    async def get_item(self, collection: str, item_id: str) -> Optional[Item]:
        key = _item_key(collection, item_id)
        self.logger.debug(f"Get: {key}")
        try:
            return await super().get_item(collection, item_id)
        except Exception as e:
            self.logger.error(f"Error: Get: {key}: {e}")
            raise

    async def add_item(self, collection: str, data: Mapping[str, Any]) -> str:
        self.logger.debug(f"Add: {collection}: {data}")
        try:
            return await super().add_item(collection, data)
        except Exception as e:
            self.logger.error(f"Error: Add: {collection}: {e}")
            raise

    async def set_item(self, collection: str, item_id: str, data: Mapping[str, Any]) -> None:
        key = _item_key(collection, item_id)
        self.logger.debug(f"Set: {key}: {data}")
        try:
            await super().set_item(collection, item_id, data)
        except Exception as e:
            self.logger.error(f"Error: Set: {key}: {e}")
            raise

    async def update_item(self, collection: str, item_id: str, updates: Mapping[str, Any]) -> None:
        key = _item_key(collection, item_id)
        self.logger.debug(f"Update: {key}: {updates}")
        try:
            await super().update_item(collection, item_id, updates)
        except Exception as e:
            self.logger.error(f"Error: Update: {key}: {e}")
            raise

    async def delete_item(self, collection: str, item_id: str) -> None:
        key = _item_key(collection, item_id)
        self.logger.debug(f"Delete: {key}")
        try:
            await super().delete_item(collection, item_id)
        except Exception as e:
            self.logger.error(f"Error: Delete: {key}: {e}")
            raise

    async def get_query(self, collection: str, query: QueryConstraints) -> List[Item]:
        key = _query_key(collection, query)
        self.logger.debug(f"Get: {key}")
        try:
            return await super().get_query(collection, query)
        except Exception as e:
            self.logger.error(f"Error: Get: {key}: {e}")
            raise

    async def set_query(self, collection: str, query: QueryConstraints, data: Mapping[str, Any]) -> int:
        key = _query_key(collection, query)
        self.logger.debug(f"Set: {key}: {data}")
        try:
            return await super().set_query(collection, query, data)
        except Exception as e:
            self.logger.error(f"Error: Set: {key}: {e}")
            raise

    async def update_query(self, collection: str, query: QueryConstraints, updates: Mapping[str, Any]) -> int:
        key = _query_key(collection, query)
        self.logger.debug(f"Update: {key}: {updates}")
        try:
            return await super().update_query(collection, query, updates)
        except Exception as e:
            self.logger.error(f"Error: Update: {key}: {e}")
            raise

    async def delete_query(self, collection: str, query: QueryConstraints) -> int:
        key = _query_key(collection, query)
        self.logger.debug(f"Delete: {key}")
        try:
            return await super().delete_query(collection, query)
        except Exception as e:
            self.logger.error(f"Error: Delete: {key}: {e}")
            raise
