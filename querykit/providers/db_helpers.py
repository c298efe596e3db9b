#!/usr/bin/env python3
"""
SQLite connection helpers for the SQLite provider.
Provides a context manager and a decorator for connection management.
"""

import functools
from contextlib import asynccontextmanager

import aiosqlite


@asynccontextmanager
async def aconnect(db_path: str, writer: bool = False):
    """
    Asynchronous database connection context manager.

    Args:
        db_path: Path to SQLite database
        writer: If True, commits changes on exit (rolls back on error)
    """
    conn = await aiosqlite.connect(db_path)
    try:
        await conn.execute("PRAGMA journal_mode=WAL")
        await conn.execute("PRAGMA busy_timeout=5000")

        yield conn

        if writer:
            await conn.commit()
    except Exception:
        if writer:
            await conn.rollback()
        raise
    finally:
        await conn.close()


def with_connection(writer: bool = False):
    """
    Decorator that provides a database connection to the decorated method.
    The connection is passed as the first argument after `self`.

    Args:
        writer: If True, commits changes after successful execution
    """
    def decorator(fn):
        @functools.wraps(fn)
        async def wrapper(self, *args, **kwargs):
            async with aconnect(self.db_path, writer=writer) as conn:
                return await fn(self, conn, *args, **kwargs)
        return wrapper
    return decorator
