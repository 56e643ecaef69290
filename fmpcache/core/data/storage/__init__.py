"""Keyed store implementations."""

from fmpcache.core.data.storage.base import KeyedStore, StoredRecord
from fmpcache.core.data.storage.duckdb_store import DuckDBKeyedStore
from fmpcache.core.data.storage.duckdb_factory import DuckDBConnectionFactory, DuckDBFactoryConfig
from fmpcache.core.data.storage.memory import InMemoryDocumentStore

__all__ = [
    "KeyedStore",
    "StoredRecord",
    "DuckDBKeyedStore",
    "DuckDBConnectionFactory",
    "DuckDBFactoryConfig",
    "InMemoryDocumentStore",
]
