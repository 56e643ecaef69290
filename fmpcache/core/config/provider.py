"""Provider configuration."""

from dataclasses import dataclass


@dataclass
class ProviderConfig:
    """FMP provider configuration"""

    base_url: str = "https://financialmodelingprep.com"
    api_key: str | None = None
    timeout: float = 30.0
    max_retries: int = 0
    backoff_factor: float = 1.0
    max_backoff: float = 30.0
