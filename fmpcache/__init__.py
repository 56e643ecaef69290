"""fmpcache - read-through cache for Financial Modeling Prep data

Serves symbol-keyed financial records (profiles, statements, prices, grades,
screener and earnings calendar) from a local store, refreshing them from the
provider when they are absent or older than their time-to-live.
"""

from fmpcache.core.client import FmpCache
from fmpcache.core.config import ConfigManager, FmpCacheConfig
from fmpcache.core.exceptions import (
    DataValidationError,
    FmpCacheError,
    NoDataForKeyError,
    ProviderError,
    StoreError,
)
from fmpcache.core.models import Endpoint, PartitionMode, RecordConfig
from fmpcache.core.records import RecordCatalog, default_catalog
from fmpcache.core.services import CacheService, IngestionService

__version__ = "0.1.0"

__all__ = [
    "CacheService",
    "ConfigManager",
    "DataValidationError",
    "Endpoint",
    "FmpCache",
    "FmpCacheConfig",
    "FmpCacheError",
    "IngestionService",
    "NoDataForKeyError",
    "PartitionMode",
    "ProviderError",
    "RecordCatalog",
    "RecordConfig",
    "StoreError",
    "__version__",
    "default_catalog",
]
