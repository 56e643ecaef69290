"""Tests for structured logging with trace propagation."""

from __future__ import annotations

import io
import json

import pytest

from fmpcache.core.logging import configure_logging, current_trace_id, log_context, logger


def _read_records(stream: io.StringIO) -> list[dict[str, object]]:
    stream.seek(0)
    lines = [line for line in stream.getvalue().splitlines() if line.strip()]
    return [json.loads(line) for line in lines]


@pytest.fixture
def buffer():
    stream = io.StringIO()
    configure_logging("DEBUG", console_stream=stream)
    yield stream
    configure_logging("WARNING")


def test_structured_log_contains_trace_and_context(buffer) -> None:
    with log_context(trace_id="trace-123", command="read"):
        logger.bind(record_kind="profiles", error_code="NETWORK_ERROR").info("refresh failed", symbol="AAPL")

    records = _read_records(buffer)
    assert len(records) == 1
    record = records[0]
    assert record["trace_id"] == "trace-123"
    assert record["record_kind"] == "profiles"
    assert record["error_code"] == "NETWORK_ERROR"
    assert record["context"]["command"] == "read"
    assert record["context"]["symbol"] == "AAPL"


def test_trace_id_propagates_within_context(buffer) -> None:
    with log_context() as trace_id:
        logger.info("first event")
        logger.info("second event")
        assert current_trace_id() == trace_id

    records = _read_records(buffer)
    assert len(records) == 2
    assert records[0]["trace_id"] == records[1]["trace_id"] == trace_id


def test_nested_context_merges_and_restores(buffer) -> None:
    with log_context(trace_id="outer", command="ingest"):
        with log_context(symbol="MSFT"):
            logger.info("inner")
        logger.info("outer")

    inner, outer = _read_records(buffer)
    assert inner["trace_id"] == "outer"
    assert inner["context"] == {"command": "ingest", "symbol": "MSFT"}
    assert outer["context"] == {"command": "ingest"}


def test_level_filters_records(buffer) -> None:
    stream = io.StringIO()
    configure_logging("WARNING", console_stream=stream)

    logger.info("hidden")
    logger.warning("shown")

    records = _read_records(stream)
    assert [record["message"] for record in records] == ["shown"]
    assert records[0]["level"] == "WARNING"
