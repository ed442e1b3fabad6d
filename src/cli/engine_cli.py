"""Typer CLI for one-shot scrapes and cron-style refresh runs.

Usage:
    python -m src.cli.engine_cli scrape https://example.com --selector price=.price
    python -m src.cli.engine_cli refresh --threshold-ms 3600000
"""

import os

os.environ.setdefault("LOGFIRE_IGNORE_NO_CONFIG", "1")

from pathlib import Path

_project_root = Path(__file__).resolve().parent.parent.parent
from dotenv import load_dotenv

load_dotenv(_project_root / ".env")
load_dotenv(_project_root / ".env.local")

import asyncio
import json

import typer

from src.config import get_settings
from src.exceptions import PersistenceError
from src.logging_config import setup_logfire
from src.services.engine import build_content_engine
from src.services.url_validator import validate_selectors

app = typer.Typer(help="Acquire web pages as structured documents and refresh stale ones.")


def parse_selector_options(values: list[str] | None) -> dict[str, str]:
    """Turn repeated ``name=css`` options into a validated selector mapping."""
    selectors: dict[str, str] = {}
    for value in values or []:
        name, sep, selector = value.partition("=")
        if not sep:
            raise typer.BadParameter(f"Expected name=selector, got '{value}'")
        selectors[name.strip()] = selector.strip()
    try:
        return validate_selectors(selectors)
    except ValueError as e:
        raise typer.BadParameter(str(e)) from e


def _build_engine():
    settings = get_settings()
    setup_logfire(settings=settings)
    return build_content_engine(settings)


@app.command()
def scrape(
    url: str = typer.Argument(..., help="Absolute http(s) URL to acquire"),
    selector: list[str] = typer.Option(
        None, "--selector", "-s", help="Custom field as name=css (repeatable)"
    ),
    no_ai: bool = typer.Option(False, "--no-ai", help="Skip AI analysis"),
    prompt: str | None = typer.Option(None, "--prompt", help="Custom analysis prompt"),
    save: bool = typer.Option(False, "--save", help="Store the document as a new record"),
):
    """Acquire one URL and print the document as JSON."""
    selectors = parse_selector_options(selector)
    engine = _build_engine()

    try:
        if save:
            result = asyncio.run(
                engine.scraper.acquire_and_store(
                    url, selectors, custom_prompt=prompt, analyze=not no_ai
                )
            )
        else:
            result = asyncio.run(
                engine.scraper.preview(
                    url, selectors, custom_prompt=prompt, analyze=not no_ai
                )
            )
    except PersistenceError as e:
        typer.echo(f"✗ Error storing document: {e}", err=True)
        raise typer.Exit(1)

    if not result.ok:
        typer.echo(f"✗ {result.error}", err=True)
        details = getattr(result.error, "details", None)
        if details:
            typer.echo(f"  {details}", err=True)
        raise typer.Exit(1)

    typer.echo(json.dumps(result.document.to_wire(), indent=2, ensure_ascii=False))
    if result.record is not None:
        typer.echo(f"✓ Stored record {result.record.get('id')}", err=True)


@app.command()
def refresh(
    threshold_ms: int | None = typer.Option(
        None,
        "--threshold-ms",
        min=0,
        help="Refresh records older than this many milliseconds (default: REFRESH_THRESHOLD_MS)",
    ),
):
    """Re-acquire every stored URL older than the threshold."""
    if threshold_ms is None:
        threshold_ms = get_settings().refresh_threshold_ms
    engine = _build_engine()
    try:
        report = asyncio.run(engine.refresh(threshold_ms))
    except PersistenceError as e:
        typer.echo(f"✗ Could not list stale documents: {e}", err=True)
        raise typer.Exit(1)

    typer.echo(json.dumps(report.counts()))
    for outcome in report.outcomes:
        if not outcome.success:
            typer.echo(f"  ✗ {outcome.url}: {outcome.error}", err=True)


if __name__ == "__main__":
    app()
