"""
Configuration helpers for querykit providers.
Supports environment variables for easy deployment configuration.
"""

import os
from typing import Any, Dict, Optional

DEFAULT_DB_PATH = os.path.expanduser("~/.querykit/data/querykit.db")


class Config:
    """
    Configuration helper that reads from environment variables.

    Environment variables:
        QUERYKIT_PROVIDER: Provider to use (memory, sqlite or qdrant; default: memory)
        QUERYKIT_DB_PATH: SQLite database path
        QDRANT_PATH: Local Qdrant storage path
        QDRANT_URL: Qdrant server URL (Docker or cloud)
        QDRANT_API_KEY: Qdrant API key (for cloud)
        QUERYKIT_DEBUG: Wrap the provider in a DebugProvider when set to 1/true
    """

    @staticmethod
    def from_env() -> Dict[str, Any]:
        """
        Create configuration from environment variables.

        Returns:
            Dict with keyword arguments for create_provider()

        Example:
            from querykit.config import Config
            from querykit.providers import create_provider

            provider = create_provider(**Config.from_env())
        """
        provider = os.getenv("QUERYKIT_PROVIDER", "memory").lower()
        config: Dict[str, Any] = {"provider": provider}

        if provider == "sqlite":
            config["db_path"] = os.getenv("QUERYKIT_DB_PATH", DEFAULT_DB_PATH)
        elif provider == "qdrant":
            qdrant_url = os.getenv("QDRANT_URL")
            qdrant_api_key = os.getenv("QDRANT_API_KEY")
            qdrant_path = os.getenv("QDRANT_PATH")

            if qdrant_url:
                config["qdrant_url"] = qdrant_url
                if qdrant_api_key:
                    config["qdrant_api_key"] = qdrant_api_key
            else:
                config["qdrant_path"] = qdrant_path or ":memory:"

        if os.getenv("QUERYKIT_DEBUG", "").lower() in ("1", "true", "yes"):
            config["debug"] = True

        return config

    @staticmethod
    def for_memory() -> Dict[str, Any]:
        """Configuration for the in-memory provider."""
        return {"provider": "memory"}

    @staticmethod
    def for_sqlite(db_path: Optional[str] = None) -> Dict[str, Any]:
        """
        Configuration for a SQLite database file.

        Args:
            db_path: Path to the database (default: ~/.querykit/data/querykit.db)
        """
        return {
            "provider": "sqlite",
            "db_path": db_path or DEFAULT_DB_PATH
        }

    @staticmethod
    def for_qdrant(url: Optional[str] = None,
                   api_key: Optional[str] = None,
                   path: Optional[str] = None) -> Dict[str, Any]:
        """
        Configuration for Qdrant (remote server, local storage or in-process).

        Args:
            url: Qdrant server URL
            api_key: API key for Qdrant Cloud
            path: Local storage path (default: ":memory:" when no url is given)

        Returns:
            Configuration dict for the Qdrant provider
        """
        config: Dict[str, Any] = {"provider": "qdrant"}
        if url:
            config["qdrant_url"] = url
            if api_key:
                config["qdrant_api_key"] = api_key
        else:
            config["qdrant_path"] = path or ":memory:"
        return config
