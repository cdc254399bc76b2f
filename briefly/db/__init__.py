"""Database layer for the persistent cache."""

from .cache_entries import PostgresCacheStore
from .connection import close_connection_pool, get_connection
from .init import init_database, validate_connection

__all__ = [
    "PostgresCacheStore",
    "close_connection_pool",
    "get_connection",
    "init_database",
    "validate_connection",
]
