"""Projection of stored records into caller-facing dictionaries."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from fmpcache.core.data.storage.base import CREATED_AT, MODIFIED_AT
from fmpcache.core.data.storage.memory import DOCUMENT_ID

INTERNAL_FIELDS = frozenset({MODIFIED_AT, CREATED_AT})
ID_FIELD = "id"


def shape_record(record: Mapping[str, Any], field_order: Sequence[str] | None = None) -> dict[str, Any]:
    """Strip store bookkeeping from ``record`` and order its fields.

    Timestamps are dropped, the store identifier (``_id`` or ``id``) becomes a
    string ``id`` placed first, and when ``field_order`` is given the remaining
    fields are projected onto it. Fields absent from the record are omitted.
    Shaping an already shaped record returns it unchanged.
    """
    shaped: dict[str, Any] = {}
    identifier = record.get(DOCUMENT_ID, record.get(ID_FIELD))
    if identifier is not None:
        shaped[ID_FIELD] = str(identifier)

    body = {
        name: value
        for name, value in record.items()
        if name not in INTERNAL_FIELDS and name not in (DOCUMENT_ID, ID_FIELD)
    }
    if field_order is None:
        shaped.update(body)
    else:
        shaped.update((name, body[name]) for name in field_order if name in body)
    return shaped


def shape_records(
    records: Iterable[Mapping[str, Any]], field_order: Sequence[str] | None = None
) -> list[dict[str, Any]]:
    return [shape_record(record, field_order) for record in records]


__all__ = ["ID_FIELD", "INTERNAL_FIELDS", "shape_record", "shape_records"]
