"""Configuration management for the fmpcache client."""

import os
import tomllib
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

import tomli_w
from loguru import logger

from fmpcache.core.config.cache import CacheConfig
from fmpcache.core.config.logging import LoggingConfig
from fmpcache.core.config.provider import ProviderConfig
from fmpcache.core.config.store import StoreConfig

DEFAULT_CONFIG_PATH = Path.home() / ".fmpcache" / "config.toml"


@dataclass
class FmpCacheConfig:
    """fmpcache main configuration"""

    store: StoreConfig = field(default_factory=StoreConfig)
    provider: ProviderConfig = field(default_factory=ProviderConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_dict(cls, config_dict: dict[str, Any]) -> "FmpCacheConfig":
        """Build a configuration from a nested dictionary."""
        return cls(
            store=StoreConfig(**config_dict.get("store", {})),
            provider=ProviderConfig(**config_dict.get("provider", {})),
            cache=CacheConfig(**config_dict.get("cache", {})),
            logging=LoggingConfig(**config_dict.get("logging", {})),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to a nested dictionary."""
        return {
            "store": asdict(self.store),
            "provider": asdict(self.provider),
            "cache": asdict(self.cache),
            "logging": asdict(self.logging),
        }


def _deep_update(target: dict[str, Any], updates: dict[str, Any]) -> dict[str, Any]:
    for key, value in updates.items():
        if isinstance(value, dict):
            target[key] = _deep_update(dict(target.get(key, {})), value)
        else:
            target[key] = value
    return target


class ConfigManager:
    """Configuration manager"""

    def __init__(self, config_path: Path | None = None, *, use_env: bool = True):
        """Initialize the configuration manager.

        Args:
            config_path: TOML file to load, defaults to ``~/.fmpcache/config.toml``.
            use_env: Apply ``FMP_API_KEY`` / ``FMPCACHE_*`` overrides on top of the file.
        """
        self.config_path = config_path or DEFAULT_CONFIG_PATH
        self.use_env = use_env
        self.config = self._load_config()

    def _load_config(self) -> FmpCacheConfig:
        config_dict: dict[str, Any] = {}
        if self.config_path.exists():
            try:
                with open(self.config_path, "rb") as f:
                    config_dict = tomllib.load(f)
            except (OSError, tomllib.TOMLDecodeError) as e:
                logger.warning("Failed to load config from {}: {}", self.config_path, e)
                config_dict = {}

        if self.use_env:
            _deep_update(config_dict, load_config_from_env())

        try:
            return FmpCacheConfig.from_dict(config_dict)
        except TypeError as e:
            logger.warning("Ignoring invalid config in {}: {}", self.config_path, e)
            return FmpCacheConfig()

    def get_config(self) -> FmpCacheConfig:
        """Return the current configuration."""
        return self.config

    def update_config(self, **updates: Any) -> None:
        """Apply nested updates to the configuration."""
        self.config = FmpCacheConfig.from_dict(_deep_update(self.config.to_dict(), updates))

    def save_config(self) -> None:
        """Write the current configuration to ``config_path``."""
        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.config_path, "wb") as f:
            tomli_w.dump(_drop_none(self.config.to_dict()), f)


def _drop_none(values: dict[str, Any]) -> dict[str, Any]:
    # TOML has no null
    return {
        key: _drop_none(value) if isinstance(value, dict) else value
        for key, value in values.items()
        if value is not None
    }


def load_config_from_env() -> dict[str, Any]:
    """Load configuration overrides from environment variables."""
    config: dict[str, Any] = {}

    store_config: dict[str, Any] = {}
    backend = os.getenv("FMPCACHE_STORE_BACKEND")
    if backend is not None:
        store_config["backend"] = backend.lower()
    database = os.getenv("FMPCACHE_STORE_DATABASE")
    if database is not None:
        store_config["database"] = database
    if store_config:
        config["store"] = store_config

    provider_config: dict[str, Any] = {}
    api_key = os.getenv("FMP_API_KEY")
    if api_key:
        provider_config["api_key"] = api_key
    base_url = os.getenv("FMPCACHE_PROVIDER_BASE_URL")
    if base_url is not None:
        provider_config["base_url"] = base_url
    timeout = os.getenv("FMPCACHE_PROVIDER_TIMEOUT")
    if timeout is not None:
        provider_config["timeout"] = float(timeout)
    max_retries = os.getenv("FMPCACHE_PROVIDER_MAX_RETRIES")
    if max_retries is not None:
        provider_config["max_retries"] = int(max_retries)
    if provider_config:
        config["provider"] = provider_config

    logging_config: dict[str, Any] = {}
    level = os.getenv("FMPCACHE_LOGGING_LEVEL")
    if level is not None:
        logging_config["level"] = level
    log_file = os.getenv("FMPCACHE_LOGGING_FILE")
    if log_file is not None:
        logging_config["file"] = log_file
    if logging_config:
        config["logging"] = logging_config

    return config
