"""fmpcache core components."""

from fmpcache.core.client import FmpCache
from fmpcache.core.services import CacheService, IngestionService

__all__ = ["CacheService", "FmpCache", "IngestionService"]
