"""Pytest configuration for the fmpcache test suite."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any

import pytest

from fmpcache.core.data.providers import StubProviderClient
from fmpcache.core.data.storage import InMemoryDocumentStore
from fmpcache.core.models import Endpoint, PartitionMode, RecordConfig, SymbolLocation
from fmpcache.core.monitoring import MetricsCollector


def pytest_addoption(parser: pytest.Parser) -> None:
    """Register command-line options for controlling integration tests."""

    parser.addoption(
        "--fmpcache-run-integration",
        action="store_true",
        default=False,
        help="Run fmpcache integration tests that call the live FMP API.",
    )


def pytest_configure(config: pytest.Config) -> None:
    """Register the integration marker for fmpcache tests."""

    config.addinivalue_line(
        "markers",
        "integration: marks fmpcache tests requiring network access and an FMP API key",
    )


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Skip integration tests unless explicitly requested."""

    if config.getoption("--fmpcache-run-integration"):
        return

    skip_integration = pytest.mark.skip(reason="integration tests require --fmpcache-run-integration")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_integration)


class FrozenClock:
    """Manually advanced UTC clock."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2024, 6, 1, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta: float) -> datetime:
        self.now += timedelta(**delta)
        return self.now


def passthrough_normalizer(raw: dict[str, Any]) -> dict[str, Any]:
    return dict(raw)


def make_config(
    name: str = "items",
    *,
    mode: PartitionMode = PartitionMode.BY_KEY,
    unique: tuple[str, ...] = ("symbol",),
    single: bool | None = None,
    latest_field: str | None = None,
    ttl: timedelta = timedelta(hours=24),
    **kwargs: Any,
) -> RecordConfig:
    return RecordConfig(
        name=name,
        partition_mode=mode,
        unique_key_columns=unique,
        normalizer=kwargs.pop("normalizer", passthrough_normalizer),
        endpoint=kwargs.pop("endpoint", Endpoint(name.replace("_", "-"), symbol_location=SymbolLocation.PATH)),
        ttl=ttl,
        single_per_key=single,
        latest_field=latest_field,
        **kwargs,
    )


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def stub_provider() -> StubProviderClient:
    return StubProviderClient()


@pytest.fixture
def metrics() -> MetricsCollector:
    return MetricsCollector()


@pytest.fixture
def memory_store_factory():
    def factory(name: str = "items", partition_field: str = "symbol") -> InMemoryDocumentStore:
        return InMemoryDocumentStore(name, partition_field)

    return factory


@pytest.fixture
def config_factory():
    return make_config
