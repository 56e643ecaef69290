"""Cache configuration."""

from dataclasses import dataclass, field


@dataclass
class CacheConfig:
    """Read-through cache configuration"""

    # seconds, keyed by record kind name
    ttl_overrides: dict[str, int] = field(default_factory=dict)
    list_limit: int = 1000
