"""Configuration management module."""

from fmpcache.core.config.cache import CacheConfig
from fmpcache.core.config.logging import LoggingConfig
from fmpcache.core.config.provider import ProviderConfig
from fmpcache.core.config.settings import ConfigManager, FmpCacheConfig, load_config_from_env
from fmpcache.core.config.store import StoreConfig

__all__ = [
    "ConfigManager",
    "FmpCacheConfig",
    "load_config_from_env",
    "CacheConfig",
    "ProviderConfig",
    "StoreConfig",
    "LoggingConfig",
]
