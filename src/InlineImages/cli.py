"""Typer-based CLI for the image inliner."""

from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import Any, Dict, Optional

import typer
from rich.console import Console

from .diagnostics import DiagnosticsSink
from .errors import ConfigError, DocumentError
from .logging_utils import setup_logging
from .pipeline import inline_file
from .settings import InlineConfig, load_config

__all__ = ["app", "main"]

LOGGER = logging.getLogger(__name__)

err_console = Console(stderr=True)
app = typer.Typer(help="Inline <img> src/srcset references of an HTML file as data URIs.")


def _cli_overrides(
    *,
    root: Optional[Path],
    max_mb: Optional[float],
    workers: Optional[int],
    timeout: Optional[float],
    max_redirects: Optional[int],
    no_remote: bool,
    log_level: Optional[str],
    log_file: Optional[Path],
) -> Dict[str, Any]:
    overrides: Dict[str, Any] = {
        "root": root,
        "workers": workers,
        "http": {"timeout_s": timeout, "max_redirects": max_redirects},
        "logging": {"level": log_level, "json_log_file": log_file},
    }
    if max_mb is not None:
        overrides["max_bytes"] = math.floor(max_mb * 1024 * 1024)
    if no_remote:
        overrides["fetch_remote"] = False
    return overrides


def _load(config_file: Optional[Path], overrides: Dict[str, Any]) -> InlineConfig:
    try:
        return load_config(path=config_file, cli_overrides=overrides)
    except ConfigError as exc:
        err_console.print(f"✗ {exc}", style="red", markup=False, highlight=False)
        raise typer.Exit(code=exc.exit_code) from exc


@app.command()
def run(
    input_file: Path = typer.Argument(..., help="HTML document to process"),
    output: Optional[Path] = typer.Option(
        None, "-o", "--output", help="Output file (default: stdout)"
    ),
    root: Optional[Path] = typer.Option(
        None, "--root", help="Base directory for local references (default: input directory)"
    ),
    max_mb: Optional[float] = typer.Option(
        None, "--max-mb", help="Per-image size ceiling in MiB (default: 10)"
    ),
    workers: Optional[int] = typer.Option(
        None, "--workers", help="Threads used to prefetch remote images"
    ),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", help="Wall-clock seconds per remote fetch, redirects included"
    ),
    max_redirects: Optional[int] = typer.Option(
        None, "--max-redirects", help="Redirect hops allowed per remote fetch"
    ),
    no_remote: bool = typer.Option(
        False, "--no-remote", help="Leave http(s) and // references untouched"
    ),
    config_file: Optional[Path] = typer.Option(
        None, "--config", "-c", help="YAML or JSON config file"
    ),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Logging level"),
    log_file: Optional[Path] = typer.Option(None, "--log-file", help="JSON-lines log file"),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Debug logging"),
) -> None:
    """Rewrite image references of INPUT_FILE as base64 data URIs."""

    overrides = _cli_overrides(
        root=root,
        max_mb=max_mb,
        workers=workers,
        timeout=timeout,
        max_redirects=max_redirects,
        no_remote=no_remote,
        log_level="DEBUG" if verbose else log_level,
        log_file=log_file,
    )
    cfg = _load(config_file, overrides)
    setup_logging(cfg.logging.level, cfg.logging.json_log_file)

    sink = DiagnosticsSink()
    try:
        report = inline_file(input_file, output, cfg, diagnostics=sink)
    except DocumentError as exc:
        err_console.print(f"✗ {exc}", style="red", markup=False, highlight=False)
        raise typer.Exit(code=exc.exit_code) from exc

    if output is None:
        typer.echo(report.html, nl=False)
    LOGGER.info(
        "run complete",
        extra={
            "src_inlined": report.src_inlined,
            "srcset_updated": report.srcset_updated,
            "warnings": len(report.warnings),
            "destination": report.destination,
        },
    )
    err_console.print(sink.summary(report.destination), markup=False, highlight=False, soft_wrap=True)


def main() -> None:
    """Console-script entry point."""
    app()


if __name__ == "__main__":
    main()
