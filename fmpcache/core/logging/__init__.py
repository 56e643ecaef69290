"""Logging utilities for monitoring and debugging."""

from fmpcache.core.logging.config import LogConfig
from fmpcache.core.logging.logger import (
    bind,
    configure_logging,
    current_trace_id,
    get_logger,
    log_context,
    logger,
)

__all__ = [
    "LogConfig",
    "bind",
    "configure_logging",
    "current_trace_id",
    "get_logger",
    "log_context",
    "logger",
]
