"""Stock screener: one global snapshot keyed by symbol."""

from datetime import timedelta

from fmpcache.core.models import Endpoint, PartitionMode, RecordConfig
from fmpcache.core.records.fields import Column, field_order, flag, integer, mapper, number, text, upper_text

NAME = "stock_screener"

COLUMNS = (
    Column("symbol", upper_text),
    Column("companyName", text),
    Column("marketCap", integer),
    Column("sector", text),
    Column("industry", text),
    Column("beta", number),
    Column("price", number),
    Column("lastAnnualDividend", number),
    Column("volume", integer),
    Column("exchange", text),
    Column("exchangeShortName", text),
    Column("country", text),
    Column("isEtf", flag),
    Column("isFund", flag),
    Column("isActivelyTrading", flag),
)


def config() -> RecordConfig:
    return RecordConfig(
        name=NAME,
        partition_mode=PartitionMode.WHOLE_COLLECTION,
        unique_key_columns=("symbol",),
        normalizer=mapper(COLUMNS),
        endpoint=Endpoint("stock-screener", params={"limit": 10000, "isActivelyTrading": "true"}),
        ttl=timedelta(hours=4),
        field_order=field_order(COLUMNS),
    )
