"""Earnings calendar: one global snapshot keyed by symbol and date."""

from __future__ import annotations

import re
from datetime import UTC, datetime, timedelta

from loguru import logger

from fmpcache.core.models import Endpoint, PartitionMode, RawRecord, RecordConfig
from fmpcache.core.records.fields import Column, field_order, mapper, number, text, upper_text

NAME = "earnings_calendar"

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

COLUMNS = (
    Column("symbol", upper_text),
    Column("date", text),
    Column("epsEstimated", number),
    Column("epsActual", number),
    Column("revenueEstimated", number),
    Column("revenueActual", number),
    Column("lastUpdated", text),
)


def _updated_at(item: RawRecord) -> datetime | None:
    value = item.get("lastUpdated")
    if not isinstance(value, str) or not value:
        return None
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None
    return parsed if parsed.tzinfo is not None else parsed.replace(tzinfo=UTC)


def _is_valid(item: RawRecord) -> bool:
    symbol = item.get("symbol")
    if not isinstance(symbol, str) or not symbol.strip():
        return False
    event_date = item.get("date")
    return isinstance(event_date, str) and bool(_ISO_DATE.match(event_date))


def clean_calendar(raw: list[RawRecord]) -> list[RawRecord]:
    """Drop rows without a symbol or ``YYYY-MM-DD`` date; dedupe by symbol and date.

    Among duplicates the row with the latest parseable ``lastUpdated`` wins; a
    row with an unparseable or missing ``lastUpdated`` never displaces one that
    has it, otherwise the later row wins.
    """
    valid = [item for item in raw if _is_valid(item)]
    unique: dict[tuple[str, str], RawRecord] = {}
    for item in valid:
        key = (item["symbol"].strip().upper(), item["date"])
        existing = unique.get(key)
        if existing is not None:
            current_ts, existing_ts = _updated_at(item), _updated_at(existing)
            if existing_ts is not None and (current_ts is None or existing_ts >= current_ts):
                continue
        unique[key] = item

    if len(unique) < len(raw):
        logger.bind(record_kind=NAME).info(
            "Earnings calendar cleaned: {} raw, {} valid, {} unique", len(raw), len(valid), len(unique)
        )
    return list(unique.values())


def config() -> RecordConfig:
    return RecordConfig(
        name=NAME,
        partition_mode=PartitionMode.WHOLE_COLLECTION,
        unique_key_columns=("symbol", "date"),
        normalizer=mapper(COLUMNS),
        endpoint=Endpoint("earnings-calendar", api_version="stable"),
        ttl=timedelta(hours=4),
        latest_field="date",
        field_order=field_order(COLUMNS),
        process_raw=clean_calendar,
    )
