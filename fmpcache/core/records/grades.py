"""Analyst grades consensus: one dated snapshot per symbol and day."""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, date, datetime, timedelta

from fmpcache.core.models import Endpoint, PartitionMode, RawProcessor, RawRecord, RecordConfig, SymbolLocation
from fmpcache.core.records.fields import Column, field_order, integer, iso_date, mapper, text, upper_text

NAME = "grades_consensus"

COLUMNS = (
    Column("symbol", upper_text),
    Column("date", iso_date),
    Column("consensus", text),
    Column("strongBuy", integer),
    Column("buy", integer),
    Column("hold", integer),
    Column("sell", integer),
    Column("strongSell", integer),
)


def utc_today() -> date:
    return datetime.now(UTC).date()


def first_snapshot(today: Callable[[], date] = utc_today) -> RawProcessor:
    """Keep the first consensus object and stamp it with the snapshot date."""

    def process(raw: list[RawRecord]) -> list[RawRecord]:
        if not raw:
            return []
        snapshot = dict(raw[0])
        snapshot.setdefault("date", today().isoformat())
        return [snapshot]

    return process


def config(today: Callable[[], date] = utc_today) -> RecordConfig:
    return RecordConfig(
        name=NAME,
        partition_mode=PartitionMode.BY_KEY,
        unique_key_columns=("symbol", "date"),
        normalizer=mapper(COLUMNS),
        endpoint=Endpoint("grades-consensus", api_version="stable", symbol_location=SymbolLocation.PARAM),
        ttl=timedelta(hours=24),
        single_per_key=False,
        latest_field="date",
        field_order=field_order(COLUMNS),
        process_raw=first_snapshot(today),
    )
