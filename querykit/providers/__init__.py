"""
Providers run queries against a backing store.

Example usage:
    from querykit.providers import create_provider
    from querykit.constraints import QueryConstraints

    provider = create_provider("sqlite", db_path="/tmp/items.db")
    await provider.set_item("alerts", "a1", {"priority": 5})
    items = await provider.get_query("alerts", QueryConstraints().filter({"priority>": 3}))
"""

from typing import Optional

from .base import Item, Provider, QueryBackend, make_item, strip_id
from .memory import MemoryProvider, MemoryTable, random_id
from .through import DebugProvider, ThroughProvider, find_source_provider

PROVIDERS = ("memory", "sqlite", "qdrant")


def create_provider(provider: str = "memory",
                    db_path: Optional[str] = None,
                    qdrant_url: Optional[str] = None,
                    qdrant_api_key: Optional[str] = None,
                    qdrant_path: Optional[str] = None,
                    debug: bool = False) -> Provider:
    """
    Create a provider by name.

    Args:
        provider: One of "memory", "sqlite" or "qdrant"
        db_path: SQLite database path (sqlite)
        qdrant_url: Qdrant server URL (qdrant)
        qdrant_api_key: Qdrant API key (qdrant)
        qdrant_path: Local Qdrant storage path or ":memory:" (qdrant)
        debug: Wrap the provider in a DebugProvider

    Raises:
        ValueError: If the provider name is unknown or required settings are missing
    """
    if provider == "memory":
        instance: Provider = MemoryProvider()
    elif provider == "sqlite":
        if not db_path:
            raise ValueError("SQLite provider needs a db_path")
        from .sqlite_provider import SQLiteProvider
        instance = SQLiteProvider(db_path)
    elif provider == "qdrant":
        from .qdrant_provider import QdrantProvider
        instance = QdrantProvider(
            qdrant_path=qdrant_path,
            qdrant_url=qdrant_url,
            qdrant_api_key=qdrant_api_key
        )
    else:
        raise ValueError(f"Unknown provider: {provider!r} (expected one of {', '.join(PROVIDERS)})")

    return DebugProvider(instance) if debug else instance


__all__ = [
    'Item',
    'Provider',
    'QueryBackend',
    'MemoryProvider',
    'MemoryTable',
    'ThroughProvider',
    'DebugProvider',
    'create_provider',
    'find_source_provider',
    'make_item',
    'strip_id',
    'random_id',
]
