"""Store configuration."""

from dataclasses import dataclass
from pathlib import Path


@dataclass
class StoreConfig:
    """Persistent store configuration"""

    backend: str = "duckdb"
    database: str = str(Path.home() / ".fmpcache" / "fmpcache.duckdb")
    threads: int = 1
