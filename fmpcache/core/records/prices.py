"""Daily historical prices: one series per symbol keyed by date."""

from __future__ import annotations

from datetime import timedelta

from fmpcache.core.exceptions import DataValidationError
from fmpcache.core.models import Endpoint, PartitionMode, RawRecord, RecordConfig
from fmpcache.core.records.fields import Column, field_order, integer, iso_date, mapper, number, text, upper_text

NAME = "historical_prices"

COLUMNS = (
    Column("symbol", upper_text),
    Column("date", iso_date),
    Column("open", number),
    Column("high", number),
    Column("low", number),
    Column("close", number),
    Column("adjClose", number),
    Column("volume", integer),
    Column("unadjustedVolume", integer),
    Column("change", number),
    Column("changePercent", number),
    Column("vwap", number),
    Column("label", text),
    Column("changeOverTime", number),
)


def flatten_envelope(raw: list[RawRecord]) -> list[RawRecord]:
    """Expand ``{"symbol": ..., "historical": [...]}`` into one record per day."""
    rows: list[RawRecord] = []
    for envelope in raw:
        if "historical" not in envelope:
            # already flat
            rows.append(envelope)
            continue
        history = envelope.get("historical") or []
        if not isinstance(history, list):
            raise DataValidationError("historical prices envelope must hold a list", "fmp")
        symbol = envelope.get("symbol")
        rows.extend({**item, "symbol": symbol} for item in history if isinstance(item, dict))
    return rows


def config() -> RecordConfig:
    return RecordConfig(
        name=NAME,
        partition_mode=PartitionMode.BY_KEY,
        unique_key_columns=("symbol", "date"),
        normalizer=mapper(COLUMNS),
        endpoint=Endpoint("historical-price-full"),
        ttl=timedelta(hours=24),
        single_per_key=False,
        latest_field="date",
        field_order=field_order(COLUMNS),
        process_raw=flatten_envelope,
    )
