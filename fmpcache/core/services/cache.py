"""Read-through cache service.

One :class:`CacheService` serves one record kind. Reads consult the freshness
policy against the store and, when data is absent or stale, run the
fetch -> normalize -> upsert cycle before answering from the store. The refresh
cycle is the only path that writes.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from datetime import UTC, date, datetime
from typing import Any

from loguru import logger

from fmpcache.core.data.providers.base import ProviderClient
from fmpcache.core.data.storage.base import MODIFIED_AT, KeyedStore, StoredRecord, as_utc
from fmpcache.core.exceptions import DataValidationError, NoDataForKeyError, ProviderError
from fmpcache.core.models import RawRecord, RecordConfig
from fmpcache.core.monitoring import MetricsCollector
from fmpcache.core.patterns import SingleFlight
from fmpcache.core.services.freshness import Freshness, evaluate
from fmpcache.core.services.shaping import shape_record, shape_records

Clock = Callable[[], datetime]

COLLECTION_FLIGHT = "__collection__"


def utc_now() -> datetime:
    return datetime.now(UTC)


class CacheService:
    """Generic read-through cache for one record kind."""

    def __init__(
        self,
        config: RecordConfig,
        store: KeyedStore,
        provider: ProviderClient,
        *,
        clock: Clock | None = None,
        metrics: MetricsCollector | None = None,
    ) -> None:
        self.config = config
        self.store = store
        self.provider = provider
        self._clock = clock or utc_now
        self._metrics = metrics
        self._flights: SingleFlight[int] = SingleFlight()
        self._log = logger.bind(record_kind=config.name)

    @property
    def name(self) -> str:
        return self.config.name

    # reads

    async def read_latest(self, key: str) -> dict[str, Any]:
        """Return the newest record for ``key``, refreshing it first when stale.

        For whole-collection kinds this is a read-only lookup in the stored
        snapshot.

        Raises:
            NoDataForKeyError: nothing is stored or fetched for ``key``.
            ProviderError: the refresh failed and no stale record may be served.
        """
        key = self._clean_key(key)
        if self.config.by_key:
            await self._ensure_fresh(key)
            record = await self.store.find_latest(key, self.config.order_field)
        else:
            self._record_read("listing")
            record = await self.store.find_latest(key, self.config.latest_field)

        if record is None:
            raise NoDataForKeyError(key, self.name)
        return shape_record(record, self.config.field_order)

    async def read_all_for_key(self, key: str, *, refresh: bool = True) -> list[dict[str, Any]]:
        """Return every record for ``key``, newest first.

        With ``refresh=False`` the store is read as-is: no freshness check, no
        provider call, and an empty list when nothing is stored.
        """
        key = self._clean_key(key)
        if not refresh or not self.config.by_key:
            self._record_read("listing")
            records = await self.store.find_all_for_key(key, self._listing_order_field())
            return shape_records(records, self.config.field_order)

        if self.config.single_per_key:
            return [await self.read_latest(key)]

        await self._ensure_fresh(key)
        records = await self.store.find_all_for_key(key, self.config.order_field)
        if not records:
            raise NoDataForKeyError(key, self.name)
        return shape_records(records, self.config.field_order)

    async def read_collection(self) -> list[dict[str, Any]]:
        """Return the whole collection.

        Whole-collection kinds are refreshed as one snapshot when stale. By-key
        kinds are listed read-only, ordered by key and capped at ``list_limit``.
        """
        if self.config.by_key:
            self._record_read("listing")
            records = await self.store.find_all(limit=self.config.list_limit)
            return shape_records(records, self.config.field_order)

        await self._ensure_fresh(None)
        records = await self.store.find_all()
        return shape_records(records, self.config.field_order)

    async def read_for_date(self, day: date | str, key: str | None = None) -> list[dict[str, Any]]:
        """Return stored records dated ``day``, optionally for one key.

        Read-only: only dated series kinds support it, and nothing is fetched.
        Records come back ordered by key.
        """
        if not self.config.is_series:
            raise ValueError(f"{self.name}: by-date reads need a dated series kind")
        if isinstance(day, datetime):
            day = as_utc(day).date()
        elif not isinstance(day, date):
            try:
                day = date.fromisoformat(str(day).strip())
            except ValueError:
                raise ValueError(f"{self.name}: date must be YYYY-MM-DD, got {day!r}") from None
        value = day.isoformat()
        if key is not None:
            key = self._clean_key(key)

        self._record_read("listing")
        records = await self.store.find_by_field(self.config.latest_field, value, key)
        return shape_records(records, self.config.field_order)

    async def is_fresh(self, key: str | None = None) -> bool:
        partition = self._partition(key)
        return await self._freshness(partition) is Freshness.FRESH

    # writes

    async def refresh(self, key: str | None = None) -> int:
        """Fetch, normalize and upsert unconditionally; return records written.

        Concurrent refreshes of the same key share one provider call.
        """
        partition = self._partition(key)
        return await self._flights.do(partition or COLLECTION_FLIGHT, lambda: self._refresh(partition))

    # internals

    def _clean_key(self, key: str) -> str:
        if not isinstance(key, str) or not key.strip():
            raise ValueError(f"{self.name}: key must be a non-empty string")
        return key.strip().upper()

    def _partition(self, key: str | None) -> str | None:
        """Partition key for a refresh: required by key, absent for collections."""
        if self.config.by_key:
            if key is None:
                raise ValueError(f"{self.name}: a key is required for by-key record kinds")
            return self._clean_key(key)
        if key is not None:
            raise ValueError(f"{self.name}: whole-collection kinds are refreshed without a key")
        return None

    def _listing_order_field(self) -> str | None:
        return self.config.order_field if self.config.by_key else self.config.latest_field

    def _now(self) -> datetime:
        return as_utc(self._clock())

    def _record_read(self, outcome: str) -> None:
        if self._metrics is not None:
            self._metrics.record_read(self.name, outcome)

    def _record_fetch(self, status: str) -> None:
        if self._metrics is not None:
            self._metrics.record_fetch(self.name, status)

    async def _last_modified(self, partition: str | None) -> datetime | None:
        if partition is None:
            return await self.store.latest_modified_at()
        # series age by their newest period, not by their newest write
        record = await self.store.find_latest(partition, self.config.order_field)
        return record[MODIFIED_AT] if record is not None else None

    async def _freshness(self, partition: str | None) -> Freshness:
        return evaluate(await self._last_modified(partition), self.config.ttl, self._now())

    async def _ensure_fresh(self, partition: str | None) -> Freshness:
        state = await self._freshness(partition)
        self._record_read(state.value)
        if state is Freshness.FRESH:
            self._log.debug("Cache hit for {}", partition or "collection")
            return state

        self._log.info("Cache {} for {}, refreshing", state.value, partition or "collection")
        try:
            await self._flights.do(partition or COLLECTION_FLIGHT, lambda: self._refresh_if_stale(partition))
        except (ProviderError, NoDataForKeyError) as e:
            if not (self.config.serve_stale_on_error and state is Freshness.STALE):
                raise
            self._record_read("served_stale")
            self._log.warning(
                "Refresh of {} failed ({}: {}); serving stale data",
                partition or "collection",
                type(e).__name__,
                e.message,
            )
        return state

    async def _refresh_if_stale(self, partition: str | None) -> int:
        # another flight may have refreshed while this one waited to start
        if await self._freshness(partition) is Freshness.FRESH:
            return 0
        return await self._refresh(partition)

    async def _refresh(self, partition: str | None) -> int:
        started = time.perf_counter()
        endpoint = self.config.endpoint
        try:
            if partition is None:
                raw = await self.provider.fetch_all(endpoint)
            else:
                raw = await self.provider.fetch_by_key(endpoint, partition)
            raw = self._prepare(raw)
        except ProviderError as e:
            self._record_fetch("error")
            self._log.bind(error_code=e.error_code).error(
                "Provider fetch failed for {}: {}", partition or "collection", e.message
            )
            raise

        if not raw:
            self._record_fetch("empty")
            if partition is not None:
                self._log.warning("Provider returned no data for {}", partition)
                raise NoDataForKeyError(partition, self.name)
            self._log.warning("Provider returned an empty collection; store left untouched")
            return 0

        self._record_fetch("success")
        records = self._normalize(raw, partition)
        written = await self.store.upsert_batch(self.config.unique_key_columns, records, self._now())

        elapsed = time.perf_counter() - started
        if self._metrics is not None:
            self._metrics.observe_refresh(self.name, elapsed, written)
        self._log.info(
            "Refreshed {}: {} records written in {:.3f}s", partition or "collection", written, elapsed
        )
        return written

    def _prepare(self, raw: list[RawRecord]) -> list[RawRecord]:
        """Run the validation and processing hooks on the raw array."""
        if self.config.validate_raw is not None and not self.config.validate_raw(raw):
            raise DataValidationError(f"{self.name}: invalid data from provider", self.provider.name)
        if self.config.process_raw is None:
            return raw
        try:
            return self.config.process_raw(raw)
        except DataValidationError:
            raise
        except Exception as e:
            raise DataValidationError(
                f"{self.name}: processing raw data failed: {e}", self.provider.name
            ) from e

    def _normalize(self, raw: list[RawRecord], partition: str | None) -> list[StoredRecord]:
        records: list[StoredRecord] = []
        partition_field = self.config.partition_field
        for index, item in enumerate(raw):
            try:
                record = dict(self.config.normalizer(item))
            except Exception as e:
                raise DataValidationError(
                    f"{self.name}: normalizer failed on record {index}: {e}",
                    self.provider.name,
                    validation_errors={"index": index, "error": str(e)},
                ) from e

            if partition is not None and record.get(partition_field) != partition:
                if record.get(partition_field) is not None:
                    self._log.warning(
                        "{} mismatch: requested {!r}, provider sent {!r}; using requested",
                        partition_field,
                        partition,
                        record[partition_field],
                    )
                record[partition_field] = partition

            missing = [column for column in self.config.unique_key_columns if record.get(column) is None]
            if missing:
                raise DataValidationError(
                    f"{self.name}: record {index} is missing natural key columns {missing}",
                    self.provider.name,
                    validation_errors={"index": index, "missing": missing},
                )
            records.append(record)
        return records


__all__ = ["CacheService", "Clock", "utc_now"]
