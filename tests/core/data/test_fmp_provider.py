"""Tests for the FMP HTTP client using httpx mock transports."""

from __future__ import annotations

import httpx
import pytest

from fmpcache.core.config import ProviderConfig
from fmpcache.core.data.providers import FmpProviderClient, StubProviderClient
from fmpcache.core.data.providers.fmp import build_path, redact, standardize_payload
from fmpcache.core.exceptions import (
    AuthenticationError,
    DataValidationError,
    NetworkError,
    ProviderError,
    RateLimitError,
    UpstreamNotFoundError,
)
from fmpcache.core.models import Endpoint, SymbolLocation

API_KEY = "secret-key"
PROFILE = Endpoint("profile", api_version="stable", symbol_location=SymbolLocation.PARAM)
INCOME = Endpoint("income-statement", params={"period": "annual"})


def _client(handler, **config) -> FmpProviderClient:
    settings = {"api_key": API_KEY, **config}
    return FmpProviderClient(ProviderConfig(**settings), transport=httpx.MockTransport(handler))


def test_build_path_for_api_generations():
    assert build_path(INCOME, "AAPL") == "/api/v3/income-statement/AAPL"
    assert build_path(PROFILE, "AAPL") == "/stable/profile"
    assert build_path(Endpoint("stock-screener")) == "/api/v3/stock-screener"


def test_redact_masks_secret():
    assert redact(f"https://x/?apikey={API_KEY}", API_KEY) == "https://x/?apikey=***"
    assert redact("nothing", None) == "nothing"


def test_standardize_payload_shapes():
    assert standardize_payload({"symbol": "AAPL"}) == [{"symbol": "AAPL"}]
    assert standardize_payload([]) == []
    with pytest.raises(DataValidationError):
        standardize_payload("oops")
    with pytest.raises(DataValidationError):
        standardize_payload([1, 2])
    with pytest.raises(ProviderError):
        standardize_payload({"Error Message": "Invalid API KEY."})


@pytest.mark.asyncio
async def test_symbol_in_query_parameter_for_stable_endpoints():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=[{"symbol": "AAPL"}])

    async with _client(handler) as client:
        records = await client.fetch_by_key(PROFILE, "AAPL")

    assert records == [{"symbol": "AAPL"}]
    assert seen[0].url.path == "/stable/profile"
    assert seen[0].url.params["symbol"] == "AAPL"
    assert seen[0].url.params["apikey"] == API_KEY


@pytest.mark.asyncio
async def test_symbol_in_path_with_static_params():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=[{"symbol": "MSFT", "date": "2024-06-30"}])

    async with _client(handler) as client:
        await client.fetch_by_key(INCOME, "MSFT")

    assert seen[0].url.path == "/api/v3/income-statement/MSFT"
    assert seen[0].url.params["period"] == "annual"
    assert "symbol" not in seen[0].url.params


@pytest.mark.asyncio
async def test_fetch_all_has_no_symbol():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=[{"symbol": "A"}, {"symbol": "B"}])

    async with _client(handler) as client:
        records = await client.fetch_all(Endpoint("stock-screener", params={"limit": 10}))

    assert len(records) == 2
    assert seen[0].url.path == "/api/v3/stock-screener"
    assert seen[0].url.params["limit"] == "10"


@pytest.mark.asyncio
async def test_single_object_is_wrapped_in_list():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"symbol": "AAPL", "historical": []})

    async with _client(handler) as client:
        records = await client.fetch_by_key(Endpoint("historical-price-full"), "AAPL")

    assert records == [{"symbol": "AAPL", "historical": []}]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("status", "error_type"),
    [
        (401, AuthenticationError),
        (403, AuthenticationError),
        (404, UpstreamNotFoundError),
        (429, RateLimitError),
        (500, NetworkError),
        (502, NetworkError),
    ],
)
async def test_status_mapping(status, error_type):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status, text="failure")

    async with _client(handler) as client:
        with pytest.raises(error_type):
            await client.fetch_by_key(INCOME, "AAPL")


@pytest.mark.asyncio
async def test_rate_limit_carries_retry_after():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(429, headers={"Retry-After": "30"})

    async with _client(handler) as client:
        with pytest.raises(RateLimitError) as excinfo:
            await client.fetch_all(Endpoint("stock-screener"))

    assert excinfo.value.retry_after == 30


@pytest.mark.asyncio
async def test_transport_failure_is_network_error_without_api_key():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError(f"cannot reach {request.url}", request=request)

    async with _client(handler) as client:
        with pytest.raises(NetworkError) as excinfo:
            await client.fetch_by_key(INCOME, "AAPL")

    assert API_KEY not in excinfo.value.message


@pytest.mark.asyncio
async def test_invalid_json_is_validation_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>")

    async with _client(handler) as client:
        with pytest.raises(DataValidationError):
            await client.fetch_by_key(INCOME, "AAPL")


@pytest.mark.asyncio
async def test_missing_api_key_fails_before_request():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json=[])

    client = FmpProviderClient(ProviderConfig(api_key=None), transport=httpx.MockTransport(handler))
    with pytest.raises(AuthenticationError):
        await client.fetch_by_key(INCOME, "AAPL")
    await client.close()

    assert calls == []


@pytest.mark.asyncio
async def test_network_errors_are_retried_when_enabled():
    attempts = []

    def handler(request: httpx.Request) -> httpx.Response:
        attempts.append(request)
        if len(attempts) < 3:
            return httpx.Response(503)
        return httpx.Response(200, json=[{"symbol": "AAPL"}])

    async with _client(handler, max_retries=2, backoff_factor=0.0) as client:
        records = await client.fetch_by_key(INCOME, "AAPL")

    assert records == [{"symbol": "AAPL"}]
    assert len(attempts) == 3


@pytest.mark.asyncio
async def test_rate_limits_are_never_retried():
    attempts = []

    def handler(request: httpx.Request) -> httpx.Response:
        attempts.append(request)
        return httpx.Response(429)

    async with _client(handler, max_retries=3, backoff_factor=0.0) as client:
        with pytest.raises(RateLimitError):
            await client.fetch_by_key(INCOME, "AAPL")

    assert len(attempts) == 1


@pytest.mark.asyncio
async def test_stub_provider_records_calls_and_raises_configured_errors():
    stub = StubProviderClient()
    stub.set_response(INCOME, [{"symbol": "AAPL"}], key="AAPL")
    stub.set_response(INCOME, NetworkError("down", "stub"), key="MSFT")

    assert await stub.fetch_by_key(INCOME, "AAPL") == [{"symbol": "AAPL"}]
    assert await stub.fetch_by_key(INCOME, "NVDA") == []
    with pytest.raises(NetworkError):
        await stub.fetch_by_key(INCOME, "MSFT")

    assert stub.calls_for(INCOME, "AAPL") == 1
    assert len(stub.calls) == 3
