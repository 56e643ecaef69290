"""Resilience patterns."""

from fmpcache.core.patterns.retry import ExponentialBackoffRetry, RetryConfig, RetryState
from fmpcache.core.patterns.singleflight import SingleFlight

__all__ = ["ExponentialBackoffRetry", "RetryConfig", "RetryState", "SingleFlight"]
