#!/usr/bin/env python3
"""
Base provider and query backend abstractions.
Providers give access to collections of keyed items in some store; query
backends translate `QueryConstraints` into a store's native query format.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Optional

from ..constraints import FilterOperator, QueryConstraints
from ..exceptions import UnsupportedOperatorError

# Item as returned by providers: the record's data with its id under "id".
Item = Dict[str, Any]


def make_item(item_id: str, data: Mapping[str, Any]) -> Item:
    """Build an item dict from an id and the stored data."""
    return {**data, "id": item_id}


def strip_id(data: Mapping[str, Any]) -> Dict[str, Any]:
    """Get the data to store for an item (its id is stored separately)."""
    return {k: v for k, v in data.items() if k != "id"}


class Provider(ABC):
    """
    Provides access to collections of items (e.g. in-memory, SQLite or Qdrant).
    """

    @abstractmethod
    async def get_item(self, collection: str, item_id: str) -> Optional[Item]:
        """
        Get a single item.

        Args:
            collection: Name of the collection
            item_id: Id of the item

        Returns:
            The item, or None if it doesn't exist
        """
        pass

    @abstractmethod
    async def add_item(self, collection: str, data: Mapping[str, Any]) -> str:
        """
        Create a new item with a random unique id.

        Returns:
            The id of the created item
        """
        pass

    @abstractmethod
    async def set_item(self, collection: str, item_id: str, data: Mapping[str, Any]) -> None:
        """Set the complete data of an item, creating it if it doesn't exist."""
        pass

    @abstractmethod
    async def update_item(self, collection: str, item_id: str, updates: Mapping[str, Any]) -> None:
        """
        Merge partial data into an existing item.

        Raises:
            RequiredError: If the item does not exist
        """
        pass

    @abstractmethod
    async def delete_item(self, collection: str, item_id: str) -> None:
        """Delete an item (no error if it doesn't exist)."""
        pass

    @abstractmethod
    async def get_query(self, collection: str, query: QueryConstraints) -> List[Item]:
        """Get all items matching a query, in query order."""
        pass

    @abstractmethod
    async def set_query(self, collection: str, query: QueryConstraints, data: Mapping[str, Any]) -> int:
        """
        Set every item matching a query to the same data.

        Returns:
            Number of items written
        """
        pass

    @abstractmethod
    async def update_query(self, collection: str, query: QueryConstraints, updates: Mapping[str, Any]) -> int:
        """Merge partial data into every item matching a query."""
        pass

    @abstractmethod
    async def delete_query(self, collection: str, query: QueryConstraints) -> int:
        """Delete every item matching a query."""
        pass


class QueryBackend(ABC):
    """
    Abstract base class for query backends.
    Each store implements this to convert constraints into its native
    query format.
    """

    # Operators the backend can express; subclasses override.
    SUPPORTED_OPERATORS = frozenset(FilterOperator)

    @abstractmethod
    def convert(self, query: QueryConstraints) -> Any:
        """
        Convert a query to the backend's native format.

        Raises:
            UnsupportedQueryError: If the query can't be expressed natively
        """
        pass

    def supports_operator(self, operator: FilterOperator) -> bool:
        """Check if this backend supports a specific operator."""
        return operator in self.SUPPORTED_OPERATORS

    def validate_query(self, query: QueryConstraints) -> None:
        """
        Validate that all operators in the query are supported.

        Raises:
            UnsupportedOperatorError: If an unsupported operator is found
        """
        for constraint in query.filters:
            if not self.supports_operator(constraint.operator):
                raise UnsupportedOperatorError(constraint.operator, self.__class__.__name__)
