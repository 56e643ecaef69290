"""Financial Modeling Prep HTTP client."""

from __future__ import annotations

import time
from collections.abc import Mapping
from typing import Any

import httpx
from loguru import logger

from fmpcache.core.config import ProviderConfig
from fmpcache.core.data.providers.base import ProviderClient
from fmpcache.core.exceptions import (
    AuthenticationError,
    DataValidationError,
    NetworkError,
    ProviderError,
    RateLimitError,
    UpstreamNotFoundError,
)
from fmpcache.core.models import Endpoint, RawRecord, SymbolLocation
from fmpcache.core.patterns import ExponentialBackoffRetry, RetryConfig

PROVIDER_NAME = "fmp"
API_KEY_PARAM = "apikey"
USER_AGENT = "fmpcache/0.1.0"


def build_path(endpoint: Endpoint, key: str | None = None) -> str:
    """Return the request path for ``endpoint``.

    ``stable`` endpoints live under ``/stable``; every other API generation
    lives under ``/api/<version>``. Keys go into the path only for
    path-located endpoints.
    """
    path = endpoint.path.strip("/")
    if endpoint.api_version == "stable":
        base = f"/stable/{path}"
    else:
        base = f"/api/{endpoint.api_version}/{path}"
    if key is not None and endpoint.symbol_location is SymbolLocation.PATH:
        base = f"{base}/{key}"
    return base


def redact(text: str, secret: str | None) -> str:
    """Mask ``secret`` in ``text``."""
    if not secret:
        return text
    return text.replace(secret, "***")


def standardize_payload(payload: Any) -> list[RawRecord]:
    """Turn a decoded response body into a list of raw records.

    Raises:
        ProviderError: the body is an FMP error message.
        DataValidationError: the body is neither an object nor an array of objects.
    """
    if isinstance(payload, dict):
        message = payload.get("Error Message")
        if message:
            raise ProviderError(f"FMP error: {message}", PROVIDER_NAME)
        return [payload]
    if isinstance(payload, list):
        if not all(isinstance(item, dict) for item in payload):
            raise DataValidationError(
                "Unexpected raw data format from FMP: array items must be objects",
                PROVIDER_NAME,
            )
        return payload
    raise DataValidationError(
        f"Unexpected raw data format from FMP: {type(payload).__name__}",
        PROVIDER_NAME,
    )


class FmpProviderClient(ProviderClient):
    """Async FMP client built on :class:`httpx.AsyncClient`."""

    name = PROVIDER_NAME

    def __init__(
        self,
        config: ProviderConfig | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config or ProviderConfig()
        if self.config.timeout <= 0:
            raise ValueError("timeout must be positive")
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.config.base_url,
                timeout=httpx.Timeout(self.config.timeout),
                headers={"User-Agent": USER_AGENT, "Accept": "application/json"},
                follow_redirects=True,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def fetch_by_key(
        self,
        endpoint: Endpoint,
        key: str,
        params: Mapping[str, Any] | None = None,
    ) -> list[RawRecord]:
        query = {**endpoint.params, **(params or {})}
        if endpoint.symbol_location is SymbolLocation.PARAM:
            query["symbol"] = key
        return await self._get(build_path(endpoint, key), query)

    async def fetch_all(
        self,
        endpoint: Endpoint,
        params: Mapping[str, Any] | None = None,
    ) -> list[RawRecord]:
        query = {**endpoint.params, **(params or {})}
        return await self._get(build_path(endpoint), query)

    async def _get(self, path: str, query: dict[str, Any]) -> list[RawRecord]:
        if not self.config.api_key:
            raise AuthenticationError("FMP API key is not configured", PROVIDER_NAME)
        if self.config.max_retries <= 0:
            return await self._request(path, query)

        retry = ExponentialBackoffRetry(
            RetryConfig(
                max_attempts=self.config.max_retries + 1,
                base_delay=self.config.backoff_factor,
                max_delay=self.config.max_backoff,
            )
        )
        return await retry.execute(self._request, path, query)

    async def _request(self, path: str, query: dict[str, Any]) -> list[RawRecord]:
        client = self._ensure_client()
        api_key = self.config.api_key
        params = {**query, API_KEY_PARAM: api_key}
        started = time.perf_counter()
        try:
            response = await client.get(path, params=params)
        except httpx.TimeoutException as e:
            raise NetworkError(
                f"FMP request to {path} timed out after {self.config.timeout}s",
                PROVIDER_NAME,
            ) from e
        except httpx.HTTPError as e:
            raise NetworkError(
                f"FMP request to {path} failed: {redact(str(e), api_key)}",
                PROVIDER_NAME,
            ) from e

        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.bind(provider=PROVIDER_NAME).debug(
            "GET {} -> {} in {:.1f}ms",
            redact(str(response.request.url), api_key),
            response.status_code,
            elapsed_ms,
        )
        self._raise_for_status(response, path)

        try:
            payload = response.json()
        except ValueError as e:
            raise DataValidationError(
                f"FMP response for {path} is not valid JSON",
                PROVIDER_NAME,
            ) from e
        return standardize_payload(payload)

    def _raise_for_status(self, response: httpx.Response, path: str) -> None:
        status = response.status_code
        if response.is_success:
            return

        body = redact(response.text[:500], self.config.api_key)
        details = {"status_code": status, "path": path}
        logger.error("FMP error body ({}) for {}: {}", status, path, body)
        if status in (401, 403):
            raise AuthenticationError(f"FMP rejected credentials ({status})", PROVIDER_NAME, details=details)
        if status == 404:
            raise UpstreamNotFoundError(f"FMP endpoint {path} not found", PROVIDER_NAME, details=details)
        if status == 429:
            retry_after = response.headers.get("Retry-After")
            raise RateLimitError(
                "FMP rate limit exceeded",
                PROVIDER_NAME,
                retry_after=int(retry_after) if retry_after and retry_after.isdigit() else None,
                details=details,
            )
        raise NetworkError(f"FMP request failed ({status})", PROVIDER_NAME, status_code=status, details={"path": path})


__all__ = ["FmpProviderClient", "build_path", "redact", "standardize_payload"]
