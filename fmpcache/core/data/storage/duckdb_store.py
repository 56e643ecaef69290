"""DuckDB-backed relational store."""

from __future__ import annotations

import json
import re
from collections.abc import Mapping, Sequence
from datetime import datetime
from threading import Lock
from typing import Any
from uuid import uuid4

import duckdb
from duckdb import DuckDBPyConnection
from loguru import logger

from fmpcache.core.data.storage.base import (
    CREATED_AT,
    MODIFIED_AT,
    KeyedStore,
    StoredRecord,
    as_utc,
    dedupe_by_natural_key,
    encode_natural_key,
    sort_newest_first,
)
from fmpcache.core.exceptions import StoreError

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def _naive_utc(value: datetime) -> datetime:
    return as_utc(value).replace(tzinfo=None)


class DuckDBKeyedStore(KeyedStore):
    """One DuckDB table per record kind.

    Business fields live in a JSON ``payload`` column; ``natural_key`` carries
    the encoded uniqueness tuple and is the upsert conflict target.
    """

    def __init__(
        self,
        connection: DuckDBPyConnection,
        name: str,
        partition_field: str = "symbol",
    ) -> None:
        if not _IDENTIFIER.match(name):
            raise ValueError(f"Invalid table name: {name!r}")
        super().__init__(name, partition_field)
        self._conn: DuckDBPyConnection | None = connection.cursor()
        self._lock = Lock()
        self._init_table()

    def _init_table(self) -> None:
        self._execute(f"""
            CREATE TABLE IF NOT EXISTS {self.name} (
                natural_key VARCHAR PRIMARY KEY,
                id UUID NOT NULL,
                partition_key VARCHAR,
                payload JSON NOT NULL,
                created_at TIMESTAMP NOT NULL,
                modified_at TIMESTAMP NOT NULL
            )
        """)

    @property
    def connection(self) -> DuckDBPyConnection:
        if self._conn is None:
            raise StoreError("Store connection is closed", store_name=self.name)
        return self._conn

    def _execute(self, sql: str, params: list[Any] | None = None) -> list[tuple[Any, ...]]:
        with self._lock:
            try:
                cursor = self.connection.execute(sql, params or [])
                return cursor.fetchall() if cursor.description else []
            except duckdb.Error as e:
                raise StoreError(f"DuckDB query failed on {self.name}: {e}", store_name=self.name) from e

    def _to_record(self, row: tuple[Any, ...]) -> StoredRecord:
        record_id, payload, created_at, modified_at = row
        record: StoredRecord = {"id": record_id}
        record.update(json.loads(payload) if isinstance(payload, str) else dict(payload))
        record[CREATED_AT] = as_utc(created_at)
        record[MODIFIED_AT] = as_utc(modified_at)
        return record

    async def find_latest(self, key: str, order_field: str | None = None) -> StoredRecord | None:
        records = await self.find_all_for_key(key, order_field)
        return records[0] if records else None

    async def find_all_for_key(self, key: str, order_field: str | None = None) -> list[StoredRecord]:
        rows = self._execute(
            f"SELECT id, payload, created_at, modified_at FROM {self.name} WHERE partition_key = ?",
            [key],
        )
        return sort_newest_first([self._to_record(row) for row in rows], order_field)

    async def find_all(self, limit: int | None = None) -> list[StoredRecord]:
        sql = f"SELECT id, payload, created_at, modified_at FROM {self.name} ORDER BY partition_key, natural_key"
        params: list[Any] = []
        if limit is not None:
            sql += " LIMIT ?"
            params.append(limit)
        return [self._to_record(row) for row in self._execute(sql, params)]

    async def find_by_field(self, field: str, value: Any, key: str | None = None) -> list[StoredRecord]:
        if not _IDENTIFIER.match(field):
            raise ValueError(f"Invalid field name: {field!r}")
        sql = (
            f"SELECT id, payload, created_at, modified_at FROM {self.name} "
            "WHERE json_extract_string(payload, ?) = ?"
        )
        params: list[Any] = [f"$.{field}", str(value)]
        if key is not None:
            sql += " AND partition_key = ?"
            params.append(key)
        sql += " ORDER BY partition_key, natural_key"
        return [self._to_record(row) for row in self._execute(sql, params)]

    async def latest_modified_at(self) -> datetime | None:
        rows = self._execute(f"SELECT max(modified_at) FROM {self.name}")
        if not rows or rows[0][0] is None:
            return None
        return as_utc(rows[0][0])

    async def upsert_batch(
        self,
        unique_key_columns: Sequence[str],
        records: Sequence[Mapping[str, Any]],
        modified_at: datetime,
    ) -> int:
        try:
            batch = dedupe_by_natural_key(records, unique_key_columns)
        except KeyError as e:
            raise StoreError(
                f"Record is missing natural key column {e.args[0]!r}",
                store_name=self.name,
            ) from e
        if not batch:
            return 0

        stamp = _naive_utc(modified_at)
        parameters = []
        for key, record in batch.items():
            partition = record.get(self.partition_field)
            parameters.append(
                [
                    encode_natural_key(key),
                    str(uuid4()),
                    None if partition is None else str(partition),
                    json.dumps(record, default=str),
                    stamp,
                    stamp,
                ]
            )

        sql = f"""
            INSERT INTO {self.name} (natural_key, id, partition_key, payload, created_at, modified_at)
            VALUES (?, ?, ?, ?, ?, ?)
            ON CONFLICT (natural_key) DO UPDATE SET
                payload = excluded.payload,
                partition_key = excluded.partition_key,
                modified_at = greatest(modified_at, excluded.modified_at)
        """
        with self._lock:
            conn = self.connection
            try:
                conn.begin()
                conn.executemany(sql, parameters)
                conn.commit()
            except duckdb.Error as e:
                try:
                    conn.rollback()
                except duckdb.Error:
                    logger.exception("Rollback failed on {}", self.name)
                raise StoreError(
                    f"Batch upsert of {len(parameters)} records failed on {self.name}: {e}",
                    store_name=self.name,
                    details={"batch_size": len(parameters)},
                ) from e
        return len(parameters)

    async def count(self) -> int:
        rows = self._execute(f"SELECT count(*) FROM {self.name}")
        return int(rows[0][0]) if rows else 0

    def close(self) -> None:
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None


__all__ = ["DuckDBKeyedStore"]
