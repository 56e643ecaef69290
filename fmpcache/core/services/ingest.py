"""Bulk population of per-symbol record kinds."""

from __future__ import annotations

import asyncio
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from loguru import logger

from fmpcache.core.exceptions import FmpCacheError
from fmpcache.core.logging import log_context

if TYPE_CHECKING:
    from fmpcache.core.client import FmpCache

PROFILE_KIND = "profiles"
SUCCESS = "success"
SKIPPED = "skipped"


class IngestStatus(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"
    PROFILE_FAILED = "profile_failed"


@dataclass
class SymbolIngestResult:
    """Outcome of ingesting one symbol, with a status per record kind."""

    symbol: str
    status: IngestStatus
    details: dict[str, str] = field(default_factory=dict)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status is IngestStatus.SUCCESS

    def to_dict(self) -> dict[str, object]:
        return {
            "symbol": self.symbol,
            "status": self.status.value,
            "details": dict(self.details),
            "error": self.error,
        }


def _failure(error: FmpCacheError) -> str:
    return f"failed: {error.message}"


class IngestionService:
    """Reads every per-symbol kind for a list of symbols through the cache.

    The profile is the critical path: when it cannot be read the remaining
    kinds of that symbol are skipped.
    """

    def __init__(
        self,
        cache: FmpCache,
        *,
        profile_kind: str = PROFILE_KIND,
        kinds: Sequence[str] | None = None,
    ) -> None:
        self.cache = cache
        self.profile_kind = profile_kind
        if kinds is None:
            kinds = [name for name in cache.catalog.by_key_names() if name != profile_kind]
        self.kinds = list(kinds)

    async def ingest_symbol(self, symbol: str) -> SymbolIngestResult:
        symbol = symbol.strip().upper()
        details = {self.profile_kind: SKIPPED, **{kind: SKIPPED for kind in self.kinds}}

        with log_context(symbol=symbol):
            try:
                await self.cache.service(self.profile_kind).read_latest(symbol)
            except FmpCacheError as e:
                details[self.profile_kind] = _failure(e)
                logger.error("Profile read failed for {}: {}; skipping remaining kinds", symbol, e.message)
                return SymbolIngestResult(
                    symbol,
                    IngestStatus.PROFILE_FAILED,
                    details,
                    f"Profile fetch failed: {e.message}",
                )
            details[self.profile_kind] = SUCCESS

            outcomes = await asyncio.gather(
                *(self.cache.service(kind).read_all_for_key(symbol) for kind in self.kinds),
                return_exceptions=True,
            )

        failed = []
        for kind, outcome in zip(self.kinds, outcomes, strict=True):
            if isinstance(outcome, FmpCacheError):
                details[kind] = _failure(outcome)
                failed.append(kind)
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                details[kind] = SUCCESS

        if failed:
            logger.warning("Ingest of {} finished with failures in {}", symbol, failed)
            return SymbolIngestResult(symbol, IngestStatus.FAILED, details, f"Failed kinds: {', '.join(failed)}")
        logger.info("Ingested {} ({} kinds)", symbol, len(details))
        return SymbolIngestResult(symbol, IngestStatus.SUCCESS, details)

    async def ingest_symbols(self, symbols: Iterable[str], *, concurrency: int = 4) -> list[SymbolIngestResult]:
        """Ingest ``symbols`` with at most ``concurrency`` symbols in flight."""
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        unique = list(dict.fromkeys(s.strip().upper() for s in symbols if s and s.strip()))
        semaphore = asyncio.Semaphore(concurrency)

        async def run(symbol: str) -> SymbolIngestResult:
            async with semaphore:
                return await self.ingest_symbol(symbol)

        results = await asyncio.gather(*(run(symbol) for symbol in unique))
        succeeded = sum(1 for result in results if result.ok)
        logger.info("Ingest finished: {}/{} symbols succeeded", succeeded, len(results))
        return list(results)

    async def known_symbols(self) -> list[str]:
        """Symbols already present in the profile store."""
        service = self.cache.service(self.profile_kind)
        records = await service.read_collection()
        field_name = service.config.partition_field
        return sorted({record[field_name] for record in records if record.get(field_name)})


__all__ = ["IngestStatus", "IngestionService", "SymbolIngestResult"]
