"""fmpcache core exception hierarchy."""

from __future__ import annotations

from typing import Any

from fmpcache.core.exceptions.codes import ErrorCode


class FmpCacheError(Exception):
    """Base exception for fmpcache."""

    def __init__(
        self,
        message: str,
        error_code: str = ErrorCode.GENERAL_ERROR.value,
        details: dict[str, Any] | None = None,
    ):
        """Initialize the exception.

        Args:
            message: Human readable message.
            error_code: Value of an :class:`ErrorCode`.
            details: Extra structured context.
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def to_payload(self) -> dict[str, Any]:
        """Return a serializable payload representing the error."""

        return {
            "code": self.error_code,
            "message": self.message,
            "details": dict(self.details),
        }


class ProviderError(FmpCacheError):
    """Upstream provider unreachable, returned a failure, or sent a malformed payload."""

    def __init__(
        self,
        message: str,
        provider_name: str,
        error_code: str = ErrorCode.PROVIDER_ERROR.value,
        details: dict[str, Any] | None = None,
    ):
        super_details = details or {}
        super_details.setdefault("provider", provider_name)
        super().__init__(message, error_code, super_details)
        self.provider_name = provider_name


class NetworkError(ProviderError):
    """Transport failure or non-success HTTP status."""

    def __init__(
        self,
        message: str,
        provider_name: str,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        super_details = details or {}
        if status_code is not None:
            super_details["status_code"] = status_code
        super().__init__(message, provider_name, ErrorCode.NETWORK_ERROR.value, super_details)
        self.status_code = status_code


class RateLimitError(ProviderError):
    """Provider rejected the request because of its rate limit."""

    def __init__(
        self,
        message: str,
        provider_name: str,
        retry_after: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        super_details = details or {}
        if retry_after is not None:
            super_details["retry_after"] = retry_after
        super().__init__(message, provider_name, ErrorCode.RATE_LIMIT_ERROR.value, super_details)
        self.retry_after = retry_after


class AuthenticationError(ProviderError):
    """Missing or rejected API credentials."""

    def __init__(
        self,
        message: str,
        provider_name: str,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, provider_name, ErrorCode.AUTHENTICATION_ERROR.value, details)


class UpstreamNotFoundError(ProviderError):
    """Provider answered 404 for the requested endpoint."""

    def __init__(
        self,
        message: str,
        provider_name: str,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, provider_name, ErrorCode.UPSTREAM_NOT_FOUND.value, details)


class DataValidationError(ProviderError):
    """Provider payload could not be validated, processed or normalized."""

    def __init__(
        self,
        message: str,
        provider_name: str = "unknown",
        validation_errors: dict[str, Any] | None = None,
        details: dict[str, Any] | None = None,
    ):
        super_details = details or {}
        if validation_errors:
            super_details["validation_errors"] = validation_errors
        super().__init__(message, provider_name, ErrorCode.DATA_VALIDATION_ERROR.value, super_details)
        self.validation_errors = validation_errors or {}


class NoDataForKeyError(FmpCacheError):
    """Upstream was reachable but returned no usable records for a key."""

    def __init__(
        self,
        key: str,
        record_kind: str,
        details: dict[str, Any] | None = None,
    ):
        super_details = details or {}
        super_details.update({"key": key, "record_kind": record_kind})
        super().__init__(
            f"No data found for {key!r} in {record_kind}",
            ErrorCode.NO_DATA_FOR_KEY.value,
            super_details,
        )
        self.key = key
        self.record_kind = record_kind


class StoreError(FmpCacheError):
    """Persistence failure during a read or an upsert."""

    def __init__(
        self,
        message: str,
        store_name: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super_details = details or {}
        if store_name:
            super_details["store"] = store_name
        super().__init__(message, ErrorCode.STORE_ERROR.value, super_details)
        self.store_name = store_name
