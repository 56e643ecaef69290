"""Standardized error codes."""

from __future__ import annotations

from enum import Enum


class ErrorCode(str, Enum):
    """Error codes carried by every :class:`FmpCacheError`."""

    GENERAL_ERROR = "GENERAL_ERROR"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"

    PROVIDER_ERROR = "PROVIDER_ERROR"
    NETWORK_ERROR = "NETWORK_ERROR"
    RATE_LIMIT_ERROR = "RATE_LIMIT_ERROR"
    AUTHENTICATION_ERROR = "AUTHENTICATION_ERROR"
    UPSTREAM_NOT_FOUND = "UPSTREAM_NOT_FOUND"
    DATA_VALIDATION_ERROR = "DATA_VALIDATION_ERROR"

    NO_DATA_FOR_KEY = "NO_DATA_FOR_KEY"

    STORE_ERROR = "STORE_ERROR"


__all__ = ["ErrorCode"]
