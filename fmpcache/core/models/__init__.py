"""Core data models."""

from fmpcache.core.models.records import (
    Endpoint,
    Normalizer,
    PartitionMode,
    RawProcessor,
    RawRecord,
    RawValidator,
    RecordConfig,
    SymbolLocation,
)

__all__ = [
    "Endpoint",
    "Normalizer",
    "PartitionMode",
    "RawProcessor",
    "RawRecord",
    "RawValidator",
    "RecordConfig",
    "SymbolLocation",
]
