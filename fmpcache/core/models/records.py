"""Record kind configuration.

A :class:`RecordConfig` is a static description of how one kind of record is
fetched from the provider, normalized, keyed in the store and shaped for
callers. It carries no behavior of its own; :class:`CacheService` interprets it.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, replace
from datetime import timedelta
from enum import Enum
from typing import Any

from loguru import logger

RawRecord = dict[str, Any]
Normalizer = Callable[[Mapping[str, Any]], dict[str, Any]]
RawProcessor = Callable[[list[RawRecord]], list[RawRecord]]
RawValidator = Callable[[Any], bool]


class PartitionMode(str, Enum):
    """How records of a kind are partitioned."""

    BY_KEY = "by_key"
    WHOLE_COLLECTION = "whole_collection"


class SymbolLocation(str, Enum):
    """Where the partition key goes in a provider request."""

    PATH = "path"
    PARAM = "param"


@dataclass(frozen=True)
class Endpoint:
    """Provider endpoint for one record kind."""

    path: str
    api_version: str = "v3"
    symbol_location: SymbolLocation = SymbolLocation.PATH
    params: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.path:
            raise ValueError("endpoint path cannot be empty")


@dataclass(frozen=True)
class RecordConfig:
    """Static description of one record kind."""

    name: str
    partition_mode: PartitionMode
    unique_key_columns: tuple[str, ...]
    normalizer: Normalizer
    endpoint: Endpoint
    ttl: timedelta
    single_per_key: bool | None = None
    latest_field: str | None = None
    field_order: tuple[str, ...] | None = None
    partition_field: str = "symbol"
    process_raw: RawProcessor | None = None
    validate_raw: RawValidator | None = None
    serve_stale_on_error: bool = False
    list_limit: int = 1000

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("record kind name cannot be empty")
        if not self.unique_key_columns:
            raise ValueError(f"{self.name}: unique_key_columns cannot be empty")
        if self.ttl <= timedelta(0):
            raise ValueError(f"{self.name}: ttl must be positive")
        if self.list_limit <= 0:
            raise ValueError(f"{self.name}: list_limit must be positive")

        # frozen dataclass, so normalize through object.__setattr__
        object.__setattr__(self, "unique_key_columns", tuple(self.unique_key_columns))
        if self.field_order is not None:
            object.__setattr__(self, "field_order", tuple(self.field_order))
        if self.single_per_key is None:
            object.__setattr__(self, "single_per_key", self.partition_mode is PartitionMode.BY_KEY)

        if self.is_series and not self.latest_field:
            raise ValueError(
                f"{self.name}: latest_field is required for by-key historical series"
            )
        if self.partition_field not in self.unique_key_columns:
            logger.warning(
                "{}: unique_key_columns {} do not include partition field {!r}",
                self.name,
                self.unique_key_columns,
                self.partition_field,
            )

    @property
    def by_key(self) -> bool:
        return self.partition_mode is PartitionMode.BY_KEY

    @property
    def is_series(self) -> bool:
        """True for by-key kinds that accumulate many records per key."""
        return self.by_key and not self.single_per_key

    @property
    def order_field(self) -> str | None:
        """Field used to pick the newest record for a key."""
        return self.latest_field if self.is_series else None

    def with_ttl(self, ttl: timedelta) -> RecordConfig:
        """Return a copy with another time-to-live."""
        return replace(self, ttl=ttl)

    def with_list_limit(self, list_limit: int) -> RecordConfig:
        return replace(self, list_limit=list_limit)


__all__ = [
    "Endpoint",
    "Normalizer",
    "PartitionMode",
    "RawProcessor",
    "RawRecord",
    "RawValidator",
    "RecordConfig",
    "SymbolLocation",
]
