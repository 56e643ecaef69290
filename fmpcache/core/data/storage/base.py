"""Keyed store abstraction."""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping, Sequence
from datetime import UTC, datetime
from typing import Any

StoredRecord = dict[str, Any]

MODIFIED_AT = "modified_at"
CREATED_AT = "created_at"


class KeyedStore(ABC):
    """Persistent collection of records of one kind.

    Records are upserted by natural key and read by partition key. Every write
    stamps ``modified_at``; a stored ``modified_at`` never moves backwards.
    """

    def __init__(self, name: str, partition_field: str = "symbol") -> None:
        self.name = name
        self.partition_field = partition_field

    @abstractmethod
    async def find_latest(self, key: str, order_field: str | None = None) -> StoredRecord | None:
        """Return the newest record for ``key`` by ``order_field`` (or ``modified_at``)."""

    @abstractmethod
    async def find_all_for_key(self, key: str, order_field: str | None = None) -> list[StoredRecord]:
        """Return every record for ``key``, newest first."""

    @abstractmethod
    async def find_all(self, limit: int | None = None) -> list[StoredRecord]:
        """Return records across all keys ordered by partition key."""

    @abstractmethod
    async def find_by_field(self, field: str, value: Any, key: str | None = None) -> list[StoredRecord]:
        """Return records whose ``field`` equals ``value``, ordered by partition key.

        Values compare by their string form. ``key`` narrows to one partition.
        """

    @abstractmethod
    async def latest_modified_at(self) -> datetime | None:
        """Return the most recent ``modified_at`` in the whole store."""

    @abstractmethod
    async def upsert_batch(
        self,
        unique_key_columns: Sequence[str],
        records: Sequence[Mapping[str, Any]],
        modified_at: datetime,
    ) -> int:
        """Create or replace ``records`` by natural key as one batch."""

    @abstractmethod
    async def count(self) -> int:
        """Return the number of stored records."""

    def close(self) -> None:
        """Release store resources."""


def natural_key(record: Mapping[str, Any], unique_key_columns: Sequence[str]) -> tuple[Any, ...]:
    """Return the natural key tuple of ``record``.

    Raises:
        KeyError: a natural-key column is missing or null.
    """
    values = []
    for column in unique_key_columns:
        value = record.get(column)
        if value is None:
            raise KeyError(column)
        values.append(value)
    return tuple(values)


def encode_natural_key(key: tuple[Any, ...]) -> str:
    return json.dumps([str(part) for part in key], separators=(",", ":"))


def dedupe_by_natural_key(
    records: Iterable[Mapping[str, Any]], unique_key_columns: Sequence[str]
) -> dict[tuple[Any, ...], dict[str, Any]]:
    """Collapse ``records`` sharing a natural key, last occurrence wins."""
    unique: dict[tuple[Any, ...], dict[str, Any]] = {}
    for record in records:
        key = natural_key(record, unique_key_columns)
        unique.pop(key, None)
        unique[key] = dict(record)
    return unique


def sort_newest_first(records: list[StoredRecord], order_field: str | None) -> list[StoredRecord]:
    """Sort by ``order_field`` descending, ties and nulls by ``modified_at``."""

    def sort_key(record: StoredRecord) -> tuple[Any, ...]:
        modified = record.get(MODIFIED_AT) or datetime.min.replace(tzinfo=UTC)
        if order_field is None:
            return (modified,)
        value = record.get(order_field)
        return (value is not None, value if value is not None else 0, modified)

    return sorted(records, key=sort_key, reverse=True)


def as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


__all__ = [
    "CREATED_AT",
    "KeyedStore",
    "MODIFIED_AT",
    "StoredRecord",
    "as_utc",
    "dedupe_by_natural_key",
    "encode_natural_key",
    "natural_key",
    "sort_newest_first",
]
