"""Freshness policy."""

from __future__ import annotations

from datetime import datetime, timedelta
from enum import Enum


class Freshness(str, Enum):
    ABSENT = "absent"
    STALE = "stale"
    FRESH = "fresh"


def evaluate(last_modified_at: datetime | None, ttl: timedelta, now: datetime) -> Freshness:
    """Classify stored data last written at ``last_modified_at``."""
    if last_modified_at is None:
        return Freshness.ABSENT
    if now - last_modified_at < ttl:
        return Freshness.FRESH
    return Freshness.STALE


def is_fresh(last_modified_at: datetime | None, ttl: timedelta, now: datetime) -> bool:
    """True when data exists and is younger than ``ttl``."""
    return evaluate(last_modified_at, ttl, now) is Freshness.FRESH


__all__ = ["Freshness", "evaluate", "is_fresh"]
