"""Logging configuration."""

from dataclasses import dataclass


@dataclass
class LoggingConfig:
    """Logging configuration"""

    level: str = "WARNING"
    file: str | None = None
