"""Declarative raw-to-stored field mapping used by the record normalizers."""

from __future__ import annotations

import math
import re
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from fmpcache.core.models import Normalizer

Converter = Callable[[Any], Any]

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")
_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def snake_case(name: str) -> str:
    """``changePercentage`` -> ``change_percentage``."""
    return _CAMEL_BOUNDARY.sub("_", name).lower()


def passthrough(value: Any) -> Any:
    return value


def text(value: Any) -> str | None:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def number(value: Any) -> float | None:
    """Float or ``None``; rejects values that are not numeric."""
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValueError(f"expected a number, got {value!r}")
    result = float(value)
    if math.isnan(result):
        return None
    return result


def number_or_zero(value: Any) -> float:
    result = number(value)
    return 0.0 if result is None else result


def integer(value: Any) -> int | None:
    result = number(value)
    return None if result is None else round(result)


def integer_or_zero(value: Any) -> int:
    """Rounded integer, ``0`` when missing. Used for money amounts."""
    return round(number_or_zero(value))


def flag(value: Any) -> bool | None:
    if value is None:
        return None
    if isinstance(value, str):
        return value.strip().lower() in {"true", "1", "yes"}
    return bool(value)


def iso_date(value: Any) -> str | None:
    """``YYYY-MM-DD`` prefix of a date or timestamp string, else ``None``."""
    value = text(value)
    if value is None or not _ISO_DATE.match(value[:10]):
        return None
    return value[:10]


def upper_text(value: Any) -> str | None:
    value = text(value)
    return value.upper() if value else None


@dataclass(frozen=True)
class Column:
    """One stored column fed from one raw provider field."""

    source: str
    convert: Converter = passthrough
    name: str | None = None

    @property
    def column(self) -> str:
        return self.name or snake_case(self.source)


def mapper(columns: Sequence[Column]) -> Normalizer:
    """Build a normalizer projecting raw records onto ``columns``."""

    def normalize(raw: Mapping[str, Any]) -> dict[str, Any]:
        return {column.column: column.convert(raw.get(column.source)) for column in columns}

    return normalize


def field_order(columns: Sequence[Column]) -> tuple[str, ...]:
    """Caller-facing field order: ``id`` first, then the mapped columns."""
    return ("id", *(column.column for column in columns))


__all__ = [
    "Column",
    "Converter",
    "field_order",
    "flag",
    "integer",
    "integer_or_zero",
    "iso_date",
    "mapper",
    "number",
    "number_or_zero",
    "passthrough",
    "snake_case",
    "text",
    "upper_text",
]
