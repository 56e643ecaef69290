"""DuckDB-specific store behavior."""

from __future__ import annotations

from datetime import UTC, datetime
from uuid import UUID

import duckdb
import pytest

from fmpcache.core.data.storage import DuckDBConnectionFactory, DuckDBFactoryConfig, DuckDBKeyedStore
from fmpcache.core.exceptions import StoreError

T0 = datetime(2024, 6, 1, 12, 0, tzinfo=UTC)


@pytest.fixture
def connection():
    conn = duckdb.connect(":memory:")
    yield conn
    conn.close()


def test_invalid_table_name_is_rejected(connection):
    with pytest.raises(ValueError):
        DuckDBKeyedStore(connection, "items; DROP TABLE x")


@pytest.mark.asyncio
async def test_identifier_is_uuid(connection):
    store = DuckDBKeyedStore(connection, "profiles")
    await store.upsert_batch(("symbol",), [{"symbol": "AAPL"}], T0)

    record = await store.find_latest("AAPL")

    assert isinstance(record["id"], UUID)
    assert record["modified_at"].tzinfo is not None


@pytest.mark.asyncio
async def test_data_survives_reopening_the_store(connection):
    store = DuckDBKeyedStore(connection, "profiles")
    await store.upsert_batch(("symbol",), [{"symbol": "AAPL", "price": 3.5}], T0)
    store.close()

    reopened = DuckDBKeyedStore(connection, "profiles")

    assert (await reopened.find_latest("AAPL"))["price"] == 3.5


@pytest.mark.asyncio
async def test_closed_store_raises_store_error(connection):
    store = DuckDBKeyedStore(connection, "profiles")
    store.close()

    with pytest.raises(StoreError):
        await store.count()


@pytest.mark.asyncio
async def test_find_by_field_rejects_unsafe_field_names(connection):
    store = DuckDBKeyedStore(connection, "historical_prices")

    with pytest.raises(ValueError):
        await store.find_by_field("date') OR 1=1 --", "2024-05-31")


def test_factory_creates_file_database(tmp_path):
    database = tmp_path / "nested" / "cache.duckdb"
    factory = DuckDBConnectionFactory(DuckDBFactoryConfig(database=database))

    with factory.connection() as conn:
        assert conn.execute("SELECT 1").fetchone() == (1,)

    assert database.exists()


def test_factory_applies_thread_setting():
    factory = DuckDBConnectionFactory(DuckDBFactoryConfig(pragmas={"threads": 2}))

    with factory.connection() as conn:
        assert conn.execute("SELECT current_setting('threads')").fetchone()[0] == 2
