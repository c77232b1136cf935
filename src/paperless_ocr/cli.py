"""Click CLI for paperless-ocr: extract text from documents via the OCR API."""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING, Any, NoReturn, TypeVar

import click
from click.shell_completion import get_completion_class
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from paperless_ocr.config.hierarchy import load_settings
from paperless_ocr.errors.exceptions import PaperlessOcrError
from paperless_ocr.output import (
    cache_table,
    file_metrics_table,
    metrics_table,
    outcome_payload,
    render_error_json,
    render_human,
    render_json,
)

if TYPE_CHECKING:
    from paperless_ocr.api.client import OcrApiClient
    from paperless_ocr.concurrency.pool import BatchItem
    from paperless_ocr.types import OcrOutcome

F = TypeVar("F", bound=Callable[..., Any])

error_console = Console(stderr=True)

_LOG_LEVELS = {
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
    "trace": logging.DEBUG,
}
_COMPLETION_SHELLS = ("bash", "zsh", "fish")


def _setup_logging(verbosity: int, config_level: str = "warn") -> None:
    """Configure logging: -v info, -vv debug, otherwise the configured level."""
    level = _LOG_LEVELS.get(config_level, logging.WARNING)
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG

    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=error_console, show_time=False, show_path=False)],
        force=True,
    )


def _fail(error: PaperlessOcrError, as_json: bool) -> NoReturn:
    if as_json:
        click.echo(render_error_json(error))
    else:
        error_console.print(f"[red]Error:[/red] {escape(error.user_message())}", highlight=False)
    sys.exit(error.kind.exit_code)


# Options shared by extract and batch
def _common_options(fn: F) -> F:
    options = [
        click.option("--api-key", default=None, help="API key (overrides config)."),
        click.option("--api-base-url", default=None, help="API base URL."),
        click.option("--model", default=None, help="OCR model name."),
        click.option(
            "--config",
            "config_path",
            type=click.Path(dir_okay=False),
            default=None,
            help="Explicit config file (TOML or YAML).",
        ),
        click.option("--json", "as_json", is_flag=True, default=False, help="Emit JSON."),
        click.option("--no-cache", is_flag=True, default=False, help="Disable caching."),
        click.option("-v", "--verbose", count=True, help="Increase verbosity (-v info, -vv debug)."),
    ]
    for option in reversed(options):
        fn = option(fn)
    return fn


@click.group()
@click.version_option(package_name="paperless-ocr")
def cli() -> None:
    """paperless-ocr: extract text from PDFs and images with a remote OCR API."""


@cli.command()
@click.argument("file", type=click.Path(dir_okay=False))
@_common_options
def extract(
    file: str,
    api_key: str | None,
    api_base_url: str | None,
    model: str | None,
    config_path: str | None,
    as_json: bool,
    no_cache: bool,
    verbose: int,
) -> None:
    """Extract text from a single FILE."""
    from paperless_ocr.core import create_client, process_file

    _setup_logging(verbose)
    try:
        settings = load_settings(
            config_path,
            api_key=api_key,
            api_base_url=api_base_url,
            model=model,
            **{"cache.disabled": True if no_cache else None},
        )
        _setup_logging(verbose, settings.log_level)
        client = create_client(settings)

        async def _run() -> OcrOutcome:
            async with client:
                return await process_file(client, settings, file, model)

        outcome = asyncio.run(_run())
    except PaperlessOcrError as e:
        _fail(e, as_json)

    click.echo(render_json(outcome) if as_json else render_human(outcome))

    if verbose >= 1:
        _print_summary(client)


@cli.command()
@click.argument("files", nargs=-1, required=True, type=click.Path(dir_okay=False))
@click.option("--workers", type=int, default=None, help="Concurrent files.")
@click.option(
    "--output-dir",
    type=click.Path(file_okay=False),
    default=None,
    help="Write <name>.txt per input file here instead of printing.",
)
@_common_options
def batch(
    files: tuple[str, ...],
    workers: int | None,
    output_dir: str | None,
    api_key: str | None,
    api_base_url: str | None,
    model: str | None,
    config_path: str | None,
    as_json: bool,
    no_cache: bool,
    verbose: int,
) -> None:
    """Extract text from several FILES concurrently."""
    from paperless_ocr.concurrency.pool import BatchPool
    from paperless_ocr.core import create_client, process_file

    _setup_logging(verbose)
    try:
        settings = load_settings(
            config_path,
            api_key=api_key,
            api_base_url=api_base_url,
            model=model,
            max_workers=workers,
            **{"cache.disabled": True if no_cache else None},
        )
        _setup_logging(verbose, settings.log_level)
        client = create_client(settings)
    except PaperlessOcrError as e:
        _fail(e, as_json)

    async def _run() -> list[BatchItem]:
        async with client:
            pool = BatchPool(settings.max_workers)
            return await pool.run(lambda p: process_file(client, settings, p, model), list(files))

    items = asyncio.run(_run())

    out_dir = Path(output_dir) if output_dir else None
    if out_dir is not None:
        out_dir.mkdir(parents=True, exist_ok=True)

    for item in items:
        if as_json:
            if item.outcome is not None:
                line = {"file": str(item.path), "success": True, "data": outcome_payload(item.outcome)}
            else:
                line = {"file": str(item.path), "success": False, "error": item.error.to_dict()}
            click.echo(json.dumps(line, ensure_ascii=False))
        elif item.outcome is None:
            error_console.print(
                f"[red]Failed:[/red] {item.path}: {escape(item.error.user_message())}", highlight=False
            )
        elif out_dir is not None:
            target = out_dir / f"{item.path.stem}.txt"
            target.write_text(item.outcome.text, encoding="utf-8")
            error_console.print(f"[green]Written to {target}[/green]", highlight=False)
        else:
            click.echo(render_human(item.outcome))
            click.echo()

    failed = sum(1 for item in items if not item.ok)
    if verbose >= 1 or failed:
        error_console.print(f"Processed {len(items)} file(s), {failed} failed", highlight=False)
    if verbose >= 1:
        _print_summary(client)
    if failed:
        sys.exit(1)


@cli.command()
@click.argument("shell", type=click.Choice(_COMPLETION_SHELLS))
def completions(shell: str) -> None:
    """Print a shell completion script for SHELL."""
    comp_cls = get_completion_class(shell)
    if comp_cls is None:
        raise click.BadParameter(f"Unsupported shell: {shell}")
    comp = comp_cls(cli, {}, "paperless-ocr", "_PAPERLESS_OCR_COMPLETE")
    click.echo(comp.source())


@cli.group()
def config() -> None:
    """Configuration commands."""


@config.command("show")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Explicit config file (TOML or YAML).",
)
def config_show(config_path: str | None) -> None:
    """Show the resolved configuration (API key redacted)."""
    try:
        settings = load_settings(config_path)
    except PaperlessOcrError as e:
        _fail(e, False)
    click.echo(json.dumps(settings.redacted_dump(), indent=2))


def _print_summary(client: OcrApiClient) -> None:
    """Print API metrics, file metrics and cache statistics to stderr."""
    error_console.print()
    error_console.print(metrics_table(client.metrics_snapshot()))
    summary = client.file_metrics_summary()
    if summary.count:
        error_console.print(file_metrics_table(summary))
    error_console.print(cache_table(client.cache_stats()))


def main() -> None:
    """Entry point for the CLI."""
    cli()
