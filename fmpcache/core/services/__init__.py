"""Cache services."""

from fmpcache.core.services.cache import CacheService
from fmpcache.core.services.freshness import Freshness, evaluate, is_fresh
from fmpcache.core.services.ingest import IngestionService, IngestStatus, SymbolIngestResult
from fmpcache.core.services.shaping import shape_record, shape_records

__all__ = [
    "CacheService",
    "Freshness",
    "IngestStatus",
    "IngestionService",
    "SymbolIngestResult",
    "evaluate",
    "is_fresh",
    "shape_record",
    "shape_records",
]
