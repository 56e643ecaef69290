"""Exception handling module."""

from fmpcache.core.exceptions.base import (
    AuthenticationError,
    DataValidationError,
    FmpCacheError,
    NetworkError,
    NoDataForKeyError,
    ProviderError,
    RateLimitError,
    StoreError,
    UpstreamNotFoundError,
)
from fmpcache.core.exceptions.codes import ErrorCode

__all__ = [
    "FmpCacheError",
    "ProviderError",
    "NetworkError",
    "RateLimitError",
    "AuthenticationError",
    "UpstreamNotFoundError",
    "DataValidationError",
    "NoDataForKeyError",
    "StoreError",
    "ErrorCode",
]
