"""In-memory document store."""

from __future__ import annotations

import copy
from collections.abc import Mapping, Sequence
from datetime import datetime
from threading import Lock
from typing import Any
from uuid import uuid4

from fmpcache.core.data.storage.base import (
    CREATED_AT,
    MODIFIED_AT,
    KeyedStore,
    StoredRecord,
    as_utc,
    dedupe_by_natural_key,
    sort_newest_first,
)
from fmpcache.core.exceptions import StoreError

DOCUMENT_ID = "_id"


class InMemoryDocumentStore(KeyedStore):
    """Document-oriented store keeping one document per natural key.

    Documents carry a generated ``_id`` that survives replacement, mirroring
    replace-one-with-upsert semantics of document databases.
    """

    def __init__(self, name: str, partition_field: str = "symbol") -> None:
        super().__init__(name, partition_field)
        self._documents: dict[tuple[Any, ...], StoredRecord] = {}
        self._unique_key_columns: tuple[str, ...] | None = None
        self._lock = Lock()

    async def find_latest(self, key: str, order_field: str | None = None) -> StoredRecord | None:
        records = await self.find_all_for_key(key, order_field)
        return records[0] if records else None

    async def find_all_for_key(self, key: str, order_field: str | None = None) -> list[StoredRecord]:
        with self._lock:
            matches = [
                copy.deepcopy(doc)
                for doc in self._documents.values()
                if doc.get(self.partition_field) == key
            ]
        return sort_newest_first(matches, order_field)

    async def find_all(self, limit: int | None = None) -> list[StoredRecord]:
        with self._lock:
            documents = [copy.deepcopy(doc) for doc in self._documents.values()]
        documents.sort(key=lambda doc: str(doc.get(self.partition_field, "")))
        if limit is not None:
            documents = documents[:limit]
        return documents

    async def find_by_field(self, field: str, value: Any, key: str | None = None) -> list[StoredRecord]:
        wanted = str(value)
        with self._lock:
            matches = [
                copy.deepcopy(doc)
                for doc in self._documents.values()
                if doc.get(field) is not None
                and str(doc[field]) == wanted
                and (key is None or doc.get(self.partition_field) == key)
            ]
        matches.sort(key=lambda doc: str(doc.get(self.partition_field, "")))
        return matches

    async def latest_modified_at(self) -> datetime | None:
        with self._lock:
            stamps = [doc[MODIFIED_AT] for doc in self._documents.values()]
        return max(stamps) if stamps else None

    async def upsert_batch(
        self,
        unique_key_columns: Sequence[str],
        records: Sequence[Mapping[str, Any]],
        modified_at: datetime,
    ) -> int:
        columns = tuple(unique_key_columns)
        try:
            batch = dedupe_by_natural_key(records, columns)
        except KeyError as e:
            raise StoreError(
                f"Record is missing natural key column {e.args[0]!r}",
                store_name=self.name,
            ) from e

        stamp = as_utc(modified_at)
        with self._lock:
            if self._unique_key_columns not in (None, columns):
                raise StoreError(
                    f"Natural key changed from {self._unique_key_columns} to {columns}",
                    store_name=self.name,
                )
            self._unique_key_columns = columns
            for key, record in batch.items():
                existing = self._documents.get(key)
                document = copy.deepcopy(record)
                document.pop(DOCUMENT_ID, None)
                if existing is None:
                    document[DOCUMENT_ID] = uuid4().hex
                    document[CREATED_AT] = stamp
                    document[MODIFIED_AT] = stamp
                else:
                    document[DOCUMENT_ID] = existing[DOCUMENT_ID]
                    document[CREATED_AT] = existing[CREATED_AT]
                    document[MODIFIED_AT] = max(existing[MODIFIED_AT], stamp)
                self._documents[key] = document
        return len(batch)

    async def count(self) -> int:
        with self._lock:
            return len(self._documents)

    def close(self) -> None:
        with self._lock:
            self._documents.clear()


__all__ = ["DOCUMENT_ID", "InMemoryDocumentStore"]
