"""Utility helpers shared across CLI commands."""

from __future__ import annotations

import json
import sys
from collections.abc import Mapping, Sequence
from contextlib import ExitStack
from dataclasses import dataclass
from pathlib import Path
from typing import TextIO

import typer

from fmpcache.core.exceptions import (
    DataValidationError,
    FmpCacheError,
    NoDataForKeyError,
    ProviderError,
    UpstreamNotFoundError,
)

from .constants import (
    NOT_FOUND_EXIT_CODE,
    PROVIDER_EXIT_CODE,
    SYSTEM_EXIT_CODE,
    VALIDATION_EXIT_CODE,
)
from .formatters import OutputFormatter, create_formatter


@dataclass(slots=True)
class CLIOptions:
    """Resolved options derived from the Typer context."""

    format: str = "table"
    output_path: Path | None = None
    no_color: bool = False
    config_path: Path | None = None
    backend: str | None = None
    log_level: str | None = None


def get_cli_options(ctx: typer.Context) -> CLIOptions:
    """Extract :class:`CLIOptions` from the Typer context object."""

    ctx.ensure_object(dict)
    data = ctx.obj or {}
    return CLIOptions(
        format=str(data.get("format", "table")),
        output_path=data.get("output_path"),
        no_color=bool(data.get("no_color", False)),
        config_path=data.get("config_path"),
        backend=data.get("backend"),
        log_level=data.get("log_level"),
    )


def prepare_output(ctx: typer.Context) -> tuple[OutputFormatter, TextIO, ExitStack, CLIOptions]:
    """Resolve formatter and writable stream for the current command."""

    options = get_cli_options(ctx)
    try:
        formatter = create_formatter(options.format, no_color=options.no_color)
    except ValueError as exc:  # pragma: no cover - validated at callback
        emit_error(str(exc), "INVALID_FORMAT")
        raise typer.Exit(code=VALIDATION_EXIT_CODE) from exc

    stack = ExitStack()
    stream: TextIO
    if options.output_path is not None:
        try:
            stream = stack.enter_context(open(options.output_path, "w", encoding="utf-8"))
        except OSError as exc:
            stack.close()
            emit_error(f"Unable to open '{options.output_path}': {exc}", "OUTPUT_WRITE_ERROR")
            raise typer.Exit(code=VALIDATION_EXIT_CODE) from exc
    else:
        stream = sys.stdout

    return formatter, stream, stack, options


def emit_error(message: str, code: str, *, details: Mapping[str, object] | None = None) -> None:
    """Print a structured error payload to stderr."""

    payload: dict[str, object] = {"code": code, "message": message}
    if details:
        payload["details"] = _sanitize_details(details)
    typer.echo(json.dumps(payload, ensure_ascii=False, default=str), err=True)


def exit_code_for(error: Exception) -> int:
    """Map an exception to the CLI exit code family it belongs to."""

    if isinstance(error, (NoDataForKeyError, UpstreamNotFoundError)):
        return NOT_FOUND_EXIT_CODE
    if isinstance(error, DataValidationError):
        return VALIDATION_EXIT_CODE
    if isinstance(error, ProviderError):
        return PROVIDER_EXIT_CODE
    if isinstance(error, FmpCacheError):
        return SYSTEM_EXIT_CODE
    if isinstance(error, (KeyError, ValueError)):
        return VALIDATION_EXIT_CODE
    return SYSTEM_EXIT_CODE


def fail(error: Exception) -> typer.Exit:
    """Report ``error`` on stderr and return the matching :class:`typer.Exit`."""

    if isinstance(error, FmpCacheError):
        emit_error(error.message, error.error_code, details=error.details)
    elif isinstance(error, KeyError):
        emit_error(str(error.args[0]) if error.args else str(error), "VALIDATION_ERROR")
    elif isinstance(error, ValueError):
        emit_error(str(error), "VALIDATION_ERROR")
    else:
        emit_error(str(error), "UNEXPECTED_ERROR")
    return typer.Exit(code=exit_code_for(error))


def read_symbols_file(path: Path) -> list[str]:
    """Read newline-delimited symbols, ignoring blanks and ``#`` comments."""

    if not path.exists() or not path.is_file():
        raise OSError(f"Symbols file '{path}' does not exist")
    symbols = []
    for line in path.read_text(encoding="utf-8").splitlines():
        value = line.split("#", 1)[0].strip()
        if value:
            symbols.append(value)
    return symbols


def _sanitize_details(details: Mapping[str, object]) -> Mapping[str, object]:
    sanitized: dict[str, object] = {}
    for key, value in details.items():
        if isinstance(value, (str, int, float, bool)) or value is None:
            sanitized[key] = value
        elif isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray)):
            sanitized[key] = [str(item) for item in value]
        else:
            sanitized[key] = str(value)
    return sanitized


__all__ = [
    "CLIOptions",
    "emit_error",
    "exit_code_for",
    "fail",
    "get_cli_options",
    "prepare_output",
    "read_symbols_file",
]
