"""
Client facade for fmpcache.

:class:`FmpCache` wires configuration, the provider client, one store per
record kind and one :class:`CacheService` per record kind.
"""

from __future__ import annotations

from typing import Any

from duckdb import DuckDBPyConnection
from loguru import logger

from fmpcache.core.config import FmpCacheConfig
from fmpcache.core.data.providers import FmpProviderClient, ProviderClient
from fmpcache.core.data.storage import (
    DuckDBConnectionFactory,
    DuckDBFactoryConfig,
    DuckDBKeyedStore,
    InMemoryDocumentStore,
    KeyedStore,
)
from fmpcache.core.exceptions import ErrorCode, FmpCacheError
from fmpcache.core.models import RecordConfig
from fmpcache.core.monitoring import MetricsCollector
from fmpcache.core.records import RecordCatalog, default_catalog
from fmpcache.core.services.cache import CacheService, Clock

BACKENDS = ("duckdb", "memory")


class FmpCache:
    """
    Entry point for reading cached FMP records.

    Services are created lazily per record kind and share one provider client
    and, for the DuckDB backend, one database.
    """

    def __init__(
        self,
        config: FmpCacheConfig | None = None,
        *,
        provider: ProviderClient | None = None,
        catalog: RecordCatalog | None = None,
        clock: Clock | None = None,
        metrics: MetricsCollector | None = None,
    ) -> None:
        self.config = config or FmpCacheConfig()
        if self.config.store.backend not in BACKENDS:
            raise FmpCacheError(
                f"Unknown store backend {self.config.store.backend!r}",
                ErrorCode.CONFIGURATION_ERROR.value,
                details={"supported": list(BACKENDS)},
            )
        try:
            self.catalog = (catalog or default_catalog(clock)).with_overrides(
                self.config.cache.ttl_overrides, self.config.cache.list_limit
            )
        except (KeyError, ValueError) as e:
            raise FmpCacheError(
                f"Invalid cache configuration: {e}", ErrorCode.CONFIGURATION_ERROR.value
            ) from e
        self.provider = provider or FmpProviderClient(self.config.provider)
        self.metrics = metrics or MetricsCollector()
        self._clock = clock
        self._connection: DuckDBPyConnection | None = None
        self._stores: dict[str, KeyedStore] = {}
        self._services: dict[str, CacheService] = {}

    async def __aenter__(self) -> FmpCache:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    def service(self, name: str) -> CacheService:
        """Return the cache service of record kind ``name``."""
        service = self._services.get(name)
        if service is None:
            config = self.catalog.get(name)
            service = CacheService(
                config,
                self._store(config),
                self.provider,
                clock=self._clock,
                metrics=self.metrics,
            )
            self._services[name] = service
        return service

    def kinds(self) -> list[RecordConfig]:
        return list(self.catalog)

    def _store(self, config: RecordConfig) -> KeyedStore:
        store = self._stores.get(config.name)
        if store is not None:
            return store
        if self.config.store.backend == "memory":
            store = InMemoryDocumentStore(config.name, config.partition_field)
        else:
            store = DuckDBKeyedStore(self._duckdb(), config.name, config.partition_field)
        self._stores[config.name] = store
        return store

    def _duckdb(self) -> DuckDBPyConnection:
        if self._connection is None:
            factory = DuckDBConnectionFactory(
                DuckDBFactoryConfig(
                    database=self.config.store.database,
                    pragmas={"threads": self.config.store.threads},
                )
            )
            self._connection = factory.create_connection()
            logger.info("Opened DuckDB store at {}", self.config.store.database)
        return self._connection

    async def close(self) -> None:
        """Close the provider client and every store."""
        await self.provider.close()
        for store in self._stores.values():
            store.close()
        self._stores.clear()
        self._services.clear()
        if self._connection is not None:
            self._connection.close()
            self._connection = None


__all__ = ["FmpCache"]
