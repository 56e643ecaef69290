"""Behavioral tests shared by both keyed store implementations."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import duckdb
import pytest

from fmpcache.core.data.storage import DuckDBKeyedStore, InMemoryDocumentStore
from fmpcache.core.exceptions import StoreError

T0 = datetime(2024, 6, 1, 12, 0, tzinfo=UTC)
SERIES_KEY = ("symbol", "date")


@pytest.fixture(params=["memory", "duckdb"])
def store_factory(request):
    connection = duckdb.connect(":memory:")
    created = []

    def factory(name: str = "items"):
        if request.param == "memory":
            store = InMemoryDocumentStore(name)
        else:
            store = DuckDBKeyedStore(connection, name)
        created.append(store)
        return store

    yield factory
    for store in created:
        store.close()
    connection.close()


@pytest.mark.asyncio
async def test_upsert_creates_records_with_identifier_and_stamps(store_factory):
    store = store_factory()

    written = await store.upsert_batch(("symbol",), [{"symbol": "AAPL", "price": 1.0}], T0)

    assert written == 1
    record = await store.find_latest("AAPL")
    assert record["price"] == 1.0
    assert record["modified_at"] == T0
    assert record["created_at"] == T0
    assert record.get("_id") or record.get("id")


@pytest.mark.asyncio
async def test_single_record_per_key_is_replaced(store_factory):
    store = store_factory()
    await store.upsert_batch(("symbol",), [{"symbol": "AAPL", "price": 1.0}], T0)
    first = await store.find_latest("AAPL")

    await store.upsert_batch(("symbol",), [{"symbol": "AAPL", "price": 2.0}], T0 + timedelta(hours=1))

    assert await store.count() == 1
    second = await store.find_latest("AAPL")
    assert second["price"] == 2.0
    assert second["modified_at"] == T0 + timedelta(hours=1)
    assert second["created_at"] == T0
    assert (second.get("_id") or second.get("id")) == (first.get("_id") or first.get("id"))


@pytest.mark.asyncio
async def test_replacement_drops_fields_missing_from_new_payload(store_factory):
    store = store_factory()
    await store.upsert_batch(("symbol",), [{"symbol": "AAPL", "price": 1.0, "ceo": "TC"}], T0)
    await store.upsert_batch(("symbol",), [{"symbol": "AAPL", "price": 2.0}], T0)

    record = await store.find_latest("AAPL")

    assert "ceo" not in record


@pytest.mark.asyncio
async def test_modified_at_never_moves_backwards(store_factory):
    store = store_factory()
    await store.upsert_batch(("symbol",), [{"symbol": "AAPL", "price": 1.0}], T0)

    await store.upsert_batch(("symbol",), [{"symbol": "AAPL", "price": 2.0}], T0 - timedelta(days=1))

    record = await store.find_latest("AAPL")
    assert record["price"] == 2.0
    assert record["modified_at"] == T0
    assert await store.latest_modified_at() == T0


@pytest.mark.asyncio
async def test_series_grows_and_replaces_matching_secondary_keys(store_factory):
    store = store_factory()
    await store.upsert_batch(
        SERIES_KEY,
        [{"symbol": "MSFT", "date": "2023-06-30", "v": 1}, {"symbol": "MSFT", "date": "2024-06-30", "v": 1}],
        T0,
    )
    await store.upsert_batch(
        SERIES_KEY,
        [{"symbol": "MSFT", "date": "2024-06-30", "v": 2}, {"symbol": "MSFT", "date": "2025-06-30", "v": 2}],
        T0 + timedelta(days=8),
    )

    records = await store.find_all_for_key("MSFT", "date")

    assert [r["date"] for r in records] == ["2025-06-30", "2024-06-30", "2023-06-30"]
    assert [r["v"] for r in records] == [2, 2, 1]


@pytest.mark.asyncio
async def test_find_latest_orders_by_field(store_factory):
    store = store_factory()
    await store.upsert_batch(
        SERIES_KEY,
        [{"symbol": "MSFT", "date": "2024-06-30"}, {"symbol": "MSFT", "date": "2022-06-30"}],
        T0,
    )

    latest = await store.find_latest("MSFT", "date")

    assert latest["date"] == "2024-06-30"


@pytest.mark.asyncio
async def test_find_latest_without_order_field_uses_modified_at(store_factory):
    store = store_factory()
    await store.upsert_batch(SERIES_KEY, [{"symbol": "MSFT", "date": "2024-06-30"}], T0)
    await store.upsert_batch(SERIES_KEY, [{"symbol": "MSFT", "date": "2020-06-30"}], T0 + timedelta(hours=2))

    latest = await store.find_latest("MSFT")

    assert latest["date"] == "2020-06-30"
    assert latest["modified_at"] == T0 + timedelta(hours=2)


@pytest.mark.asyncio
async def test_duplicates_within_batch_collapse_to_last_occurrence(store_factory):
    store = store_factory()

    written = await store.upsert_batch(
        ("symbol",),
        [{"symbol": "AAPL", "price": 1.0}, {"symbol": "AAPL", "price": 3.0}],
        T0,
    )

    assert written == 1
    assert await store.count() == 1
    assert (await store.find_latest("AAPL"))["price"] == 3.0


@pytest.mark.asyncio
async def test_missing_natural_key_column_fails_whole_batch(store_factory):
    store = store_factory()

    with pytest.raises(StoreError):
        await store.upsert_batch(
            SERIES_KEY,
            [{"symbol": "AAPL", "date": "2024-01-01"}, {"symbol": "AAPL"}],
            T0,
        )

    assert await store.count() == 0


@pytest.mark.asyncio
async def test_find_all_orders_by_partition_and_limits(store_factory):
    store = store_factory()
    await store.upsert_batch(
        ("symbol",),
        [{"symbol": "MSFT"}, {"symbol": "AAPL"}, {"symbol": "NVDA"}],
        T0,
    )

    records = await store.find_all(limit=2)

    assert [r["symbol"] for r in records] == ["AAPL", "MSFT"]
    assert len(await store.find_all()) == 3


@pytest.mark.asyncio
async def test_find_by_field_matches_across_partitions(store_factory):
    store = store_factory()
    await store.upsert_batch(
        SERIES_KEY,
        [
            {"symbol": "MSFT", "date": "2024-05-31", "close": 415.1},
            {"symbol": "AAPL", "date": "2024-05-31", "close": 192.3},
            {"symbol": "AAPL", "date": "2024-05-30", "close": 191.3},
        ],
        T0,
    )

    records = await store.find_by_field("date", "2024-05-31")

    assert [(r["symbol"], r["close"]) for r in records] == [("AAPL", 192.3), ("MSFT", 415.1)]
    assert records[0]["modified_at"] == T0


@pytest.mark.asyncio
async def test_find_by_field_narrows_to_one_partition(store_factory):
    store = store_factory()
    await store.upsert_batch(
        SERIES_KEY,
        [{"symbol": "MSFT", "date": "2024-05-31"}, {"symbol": "AAPL", "date": "2024-05-31"}],
        T0,
    )

    records = await store.find_by_field("date", "2024-05-31", "MSFT")

    assert [r["symbol"] for r in records] == ["MSFT"]
    assert await store.find_by_field("date", "2024-06-01") == []
    assert await store.find_by_field("date", "2024-05-31", "NVDA") == []


@pytest.mark.asyncio
async def test_empty_store_reads(store_factory):
    store = store_factory()

    assert await store.find_latest("AAPL") is None
    assert await store.find_all_for_key("AAPL") == []
    assert await store.latest_modified_at() is None
    assert await store.count() == 0


@pytest.mark.asyncio
async def test_empty_batch_writes_nothing(store_factory):
    store = store_factory()

    assert await store.upsert_batch(("symbol",), [], T0) == 0
    assert await store.count() == 0


@pytest.mark.asyncio
async def test_reads_return_copies(store_factory):
    store = store_factory()
    await store.upsert_batch(("symbol",), [{"symbol": "AAPL", "tags": ["a"]}], T0)

    record = await store.find_latest("AAPL")
    record["tags"].append("b")

    assert (await store.find_latest("AAPL"))["tags"] == ["a"]


@pytest.mark.asyncio
async def test_stores_with_different_names_are_isolated(store_factory):
    first = store_factory("first")
    second = store_factory("second")
    await first.upsert_batch(("symbol",), [{"symbol": "AAPL"}], T0)

    assert await second.count() == 0
