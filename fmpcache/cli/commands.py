"""Cache command implementations for the fmpcache CLI."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Mapping, Sequence
from pathlib import Path
from typing import Any, TypeVar

import typer

from fmpcache.core.client import FmpCache
from fmpcache.core.config import ConfigManager
from fmpcache.core.exceptions import NoDataForKeyError
from fmpcache.core.logging import configure_logging, log_context
from fmpcache.core.services import IngestionService

from .constants import VALIDATION_EXIT_CODE
from .utils import CLIOptions, emit_error, fail, get_cli_options, prepare_output, read_symbols_file

T = TypeVar("T")

KIND_COLUMNS = ["name", "mode", "ttl_seconds", "unique_key", "latest_field", "endpoint"]
REFRESH_COLUMNS = ["kind", "key", "records"]


def build_cache(options: CLIOptions) -> FmpCache:
    """Factory hook for obtaining a configured :class:`FmpCache`."""

    manager = ConfigManager(options.config_path)
    if options.backend:
        manager.update_config(store={"backend": options.backend})
    config = manager.get_config()
    configure_logging(
        options.log_level or config.logging.level,
        file_output=config.logging.file is not None,
        file_path=config.logging.file,
    )
    return FmpCache(config)


def register(app: typer.Typer) -> None:
    """Register the cache commands on the provided application."""

    app.command("kinds")(kinds_command)
    app.command("read")(read_command)
    app.command("list")(list_command)
    app.command("refresh")(refresh_command)
    app.command("ingest")(ingest_command)


def _execute(ctx: typer.Context, operation: Callable[[FmpCache], Awaitable[T]]) -> T:
    options = get_cli_options(ctx)

    async def run() -> T:
        async with build_cache(options) as cache:
            with log_context(command=ctx.info_name):
                return await operation(cache)

    try:
        return asyncio.run(run())
    except typer.Exit:
        raise
    except Exception as error:
        raise fail(error) from error


def _render(ctx: typer.Context, rows: Sequence[Mapping[str, Any]], columns: Sequence[str] | None = None) -> None:
    formatter, stream, stack, _ = prepare_output(ctx)
    try:
        formatter.render(rows, stream=stream, columns=columns)
    finally:
        stack.close()


def kinds_command(ctx: typer.Context) -> None:
    """List the configured record kinds."""

    async def operation(cache: FmpCache) -> list[dict[str, Any]]:
        return [
            {
                "name": config.name,
                "mode": config.partition_mode.value,
                "ttl_seconds": int(config.ttl.total_seconds()),
                "unique_key": ",".join(config.unique_key_columns),
                "latest_field": config.latest_field,
                "endpoint": f"{config.endpoint.api_version}/{config.endpoint.path}",
            }
            for config in cache.kinds()
        ]

    _render(ctx, _execute(ctx, operation), KIND_COLUMNS)


def read_command(
    ctx: typer.Context,
    kind: str = typer.Argument(..., help="Record kind, see `fmpcache kinds`."),
    symbol: str = typer.Argument(..., help="Partition key, usually a ticker symbol."),
    all_records: bool = typer.Option(False, "--all", help="Return every record for the symbol."),
    no_refresh: bool = typer.Option(False, "--no-refresh", help="Read the store only, never call the provider."),
) -> None:
    """Read records for one symbol through the cache."""

    async def operation(cache: FmpCache) -> list[dict[str, Any]]:
        service = cache.service(kind)
        if all_records:
            return await service.read_all_for_key(symbol, refresh=not no_refresh)
        if no_refresh:
            records = await service.read_all_for_key(symbol, refresh=False)
            if not records:
                raise NoDataForKeyError(symbol.strip().upper(), service.name)
            return records[:1]
        return [await service.read_latest(symbol)]

    _render(ctx, _execute(ctx, operation))


def list_command(
    ctx: typer.Context,
    kind: str = typer.Argument(..., help="Record kind, see `fmpcache kinds`."),
    on_date: str | None = typer.Option(None, "--date", help="Stored records dated YYYY-MM-DD, never refreshed."),
    symbol: str | None = typer.Option(None, "--symbol", help="Narrow a --date listing to one symbol."),
) -> None:
    """List a whole collection, or the stored records of one date."""

    if symbol is not None and on_date is None:
        emit_error("--symbol requires --date.", "OPTION_ERROR")
        raise typer.Exit(code=VALIDATION_EXIT_CODE)

    async def operation(cache: FmpCache) -> list[dict[str, Any]]:
        service = cache.service(kind)
        if on_date is not None:
            return await service.read_for_date(on_date, symbol)
        return await service.read_collection()

    _render(ctx, _execute(ctx, operation))


def refresh_command(
    ctx: typer.Context,
    kind: str = typer.Argument(..., help="Record kind, see `fmpcache kinds`."),
    symbol: str | None = typer.Argument(None, help="Partition key; omit for collection kinds."),
) -> None:
    """Force a refresh from the provider."""

    async def operation(cache: FmpCache) -> list[dict[str, Any]]:
        written = await cache.service(kind).refresh(symbol)
        key = symbol.strip().upper() if symbol else None
        return [{"kind": kind, "key": key, "records": written}]

    _render(ctx, _execute(ctx, operation), REFRESH_COLUMNS)


def ingest_command(
    ctx: typer.Context,
    symbols: list[str] | None = typer.Argument(None, help="Symbols to ingest."),
    symbols_from: Path | None = typer.Option(
        None,
        "--symbols-from",
        help="Read newline-delimited symbols from a file.",
    ),
    known: bool = typer.Option(False, "--known", help="Re-ingest every symbol with a stored profile."),
    concurrency: int = typer.Option(4, "--concurrency", min=1, help="Symbols processed in parallel."),
) -> None:
    """Populate profiles and every per-symbol kind for a list of symbols."""

    collected = list(symbols or [])
    if symbols_from is not None:
        try:
            collected.extend(read_symbols_file(symbols_from))
        except OSError as exc:
            emit_error(str(exc), "SYMBOL_FILE_ERROR")
            raise typer.Exit(code=VALIDATION_EXIT_CODE) from exc

    if not collected and not known:
        emit_error("No symbols supplied for ingest command.", "SYMBOLS_MISSING")
        raise typer.Exit(code=VALIDATION_EXIT_CODE)

    async def operation(cache: FmpCache) -> list[dict[str, Any]]:
        ingestion = IngestionService(cache)
        targets = list(collected)
        if known:
            targets.extend(await ingestion.known_symbols())
        results = await ingestion.ingest_symbols(targets, concurrency=concurrency)
        rows = []
        for result in results:
            row: dict[str, Any] = {"symbol": result.symbol, "status": result.status.value}
            row.update(result.details)
            row["error"] = result.error
            rows.append(row)
        return rows

    _render(ctx, _execute(ctx, operation))


__all__ = [
    "build_cache",
    "ingest_command",
    "kinds_command",
    "list_command",
    "read_command",
    "refresh_command",
    "register",
]
