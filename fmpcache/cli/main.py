"""Main entry point for the fmpcache command line interface."""

from __future__ import annotations

from pathlib import Path

import typer

from fmpcache.core.logging import configure_logging

from .commands import register as register_cache_commands
from .formatters import create_formatter


def create_app() -> typer.Typer:
    """Create a Typer application instance for fmpcache."""

    app = typer.Typer(add_completion=False, help="Read-through cache for Financial Modeling Prep data")

    @app.callback()
    def main(
        ctx: typer.Context,
        format: str = typer.Option(
            "table",
            "--format",
            "-f",
            help="Output format (table or jsonl).",
            show_default=True,
        ),
        output: Path | None = typer.Option(
            None,
            "--output",
            "-o",
            help="Write output to a file instead of stdout.",
        ),
        config: Path | None = typer.Option(
            None,
            "--config",
            "-c",
            help="TOML configuration file (default ~/.fmpcache/config.toml).",
        ),
        backend: str | None = typer.Option(
            None,
            "--backend",
            help="Override the store backend (duckdb or memory).",
        ),
        log_level: str | None = typer.Option(
            None,
            "--log-level",
            help="Logging level for the JSON log stream on stderr (default from config, WARNING).",
        ),
        no_color: bool = typer.Option(
            False,
            "--no-color",
            help="Disable colorized output for table format.",
        ),
    ) -> None:
        ctx.ensure_object(dict)
        normalized_format = format.strip().lower()
        try:
            create_formatter(normalized_format, no_color=no_color)
        except ValueError as exc:
            raise typer.BadParameter(str(exc), param_hint="--format") from exc

        ctx.obj.update(
            {
                "format": normalized_format,
                "output_path": output,
                "config_path": config,
                "backend": backend.strip().lower() if backend else None,
                "no_color": no_color,
                "log_level": log_level.upper() if log_level else None,
            }
        )
        configure_logging(ctx.obj["log_level"] or "WARNING")

    register_cache_commands(app)
    return app


app = create_app()


def run() -> None:
    """Console script entry point."""

    app()
