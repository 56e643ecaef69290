"""Built-in FMP record kinds."""

from fmpcache.core.records.catalog import RecordCatalog, default_catalog

__all__ = ["RecordCatalog", "default_catalog"]
