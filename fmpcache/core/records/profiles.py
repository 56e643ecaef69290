"""Company profiles: one record per symbol."""

from datetime import timedelta

from fmpcache.core.models import Endpoint, PartitionMode, RecordConfig, SymbolLocation
from fmpcache.core.records.fields import (
    Column,
    field_order,
    flag,
    integer,
    iso_date,
    mapper,
    number,
    text,
    upper_text,
)

NAME = "profiles"

COLUMNS = (
    Column("symbol", upper_text),
    Column("price", number),
    Column("change", number),
    Column("changePercentage", number),
    Column("marketCap", integer),
    Column("volume", integer),
    Column("averageVolume", integer),
    Column("beta", number),
    Column("lastDividend", number),
    Column("range", text),
    Column("companyName", text),
    Column("image", text),
    Column("sector", text),
    Column("industry", text),
    Column("website", text),
    Column("description", text),
    Column("ceo", text),
    Column("fullTimeEmployees", integer),
    Column("country", text),
    Column("address", text),
    Column("city", text),
    Column("state", text),
    Column("zip", text),
    Column("phone", text),
    Column("exchange", text),
    Column("exchangeFullName", text),
    Column("currency", text),
    Column("ipoDate", iso_date),
    Column("isin", text),
    Column("cusip", text),
    Column("cik", text),
    Column("isActivelyTrading", flag),
    Column("isEtf", flag),
    Column("isAdr", flag),
    Column("isFund", flag),
    Column("defaultImage", flag),
)


def config() -> RecordConfig:
    return RecordConfig(
        name=NAME,
        partition_mode=PartitionMode.BY_KEY,
        unique_key_columns=("symbol",),
        normalizer=mapper(COLUMNS),
        endpoint=Endpoint("profile", api_version="stable", symbol_location=SymbolLocation.PARAM),
        ttl=timedelta(hours=24),
        single_per_key=True,
        field_order=field_order(COLUMNS),
    )
