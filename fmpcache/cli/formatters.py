"""Output formatter abstractions for CLI commands."""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import TextIO

from rich.box import SIMPLE
from rich.console import Console
from rich.table import Table

FORMATS = ("table", "jsonl")


class OutputFormatter:
    """Base class for CLI output formatters."""

    name: str

    def render(
        self,
        rows: Sequence[Mapping[str, object]],
        *,
        stream: TextIO,
        columns: Sequence[str] | None = None,
    ) -> None:
        """Render the provided rows to the target stream."""

        raise NotImplementedError


def _resolve_columns(rows: Sequence[Mapping[str, object]], columns: Sequence[str] | None) -> list[str]:
    if columns:
        return list(columns)
    # union of keys in first-seen order; shaped rows may omit missing fields
    resolved: dict[str, None] = {}
    for row in rows:
        resolved.update(dict.fromkeys(row))
    return list(resolved)


@dataclass(slots=True)
class TableFormatter(OutputFormatter):
    """Render output as a Rich table."""

    name: str = "table"
    no_color: bool = False

    def render(
        self,
        rows: Sequence[Mapping[str, object]],
        *,
        stream: TextIO,
        columns: Sequence[str] | None = None,
    ) -> None:
        resolved_columns = _resolve_columns(rows, columns)
        console = Console(
            file=stream,
            color_system=None if self.no_color else "auto",
            no_color=self.no_color,
            width=max(120, 16 * len(resolved_columns)),
        )

        if not rows:
            if resolved_columns:
                console.print(self._create_table(resolved_columns))
            console.print("No data available.")
            return

        table = self._create_table(resolved_columns)
        for row in rows:
            table.add_row(*(self._format_cell(row.get(column)) for column in resolved_columns))
        console.print(table)

    def _create_table(self, columns: Sequence[str]) -> Table:
        table = Table(box=SIMPLE, show_lines=False)
        header_style = "" if self.no_color else "bold"
        for column in columns:
            table.add_column(column, header_style=header_style, overflow="fold")
        return table

    def _format_cell(self, value: object) -> str:
        if value is None:
            return "-"
        if isinstance(value, (dict, list)):
            return json.dumps(value, ensure_ascii=False, default=str)
        return str(value)


@dataclass(slots=True)
class JSONLFormatter(OutputFormatter):
    """Render output as JSON Lines."""

    name: str = "jsonl"

    def render(
        self,
        rows: Sequence[Mapping[str, object]],
        *,
        stream: TextIO,
        columns: Sequence[str] | None = None,
    ) -> None:
        if columns:
            filtered = [{column: row.get(column) for column in columns} for row in rows]
        else:
            filtered = list(rows)

        for row in filtered:
            json.dump(row, stream, ensure_ascii=False, default=str)
            stream.write("\n")
        stream.flush()


def create_formatter(name: str, *, no_color: bool = False) -> OutputFormatter:
    """Instantiate a formatter by name."""

    normalized = name.strip().lower()
    if normalized == "table":
        return TableFormatter(no_color=no_color)
    if normalized == "jsonl":
        return JSONLFormatter()
    msg = f"Unsupported format '{name}'. Available formats: {', '.join(FORMATS)}."
    raise ValueError(msg)


__all__ = ["FORMATS", "JSONLFormatter", "OutputFormatter", "TableFormatter", "create_formatter"]
