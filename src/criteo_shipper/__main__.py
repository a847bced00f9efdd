"""Main CLI entry point for criteo-shipper.

This module provides a command-line interface using Typer over files of
normalized events (a JSON object, a JSON array, or newline-delimited JSON):

1.  `map`: validate and map each event, printing the Criteo wire payloads.
2.  `send`: validate, map and dispatch each event (dry-run by default via
    the DRY_RUN setting), printing a per-status summary.
"""
from __future__ import annotations

import json
import logging
from collections import Counter
from pathlib import Path
from typing import Any, List, Optional

import typer
from dotenv import find_dotenv, load_dotenv
from pydantic import ValidationError

from .config import get_settings
from .mapper import map_event
from .models.segment import NormalizedEvent
from .shipper import STATUS_FAILED, STATUS_INVALID, CriteoShipper
from .validation import InvalidEventError, ensure_valid

app = typer.Typer(help="Criteo s2s event shipper CLI")
logger = logging.getLogger(__name__)


def _load_env() -> None:
    env_file = find_dotenv(usecwd=True)
    if env_file:
        load_dotenv(env_file)
        logger.debug("Loaded environment from %s", env_file)


def load_events(path: Path) -> List[Any]:
    """Read event records from a JSON object, JSON array or NDJSON file."""
    text = path.read_text(encoding="utf-8")
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError:
        records: List[Any] = []
        for lineno, line in enumerate(text.splitlines(), start=1):
            if not line.strip():
                continue
            try:
                records.append(json.loads(line))
            except json.JSONDecodeError as e:
                raise typer.BadParameter(f"{path}:{lineno}: invalid JSON ({e.msg})") from e
        return records
    if isinstance(parsed, list):
        return parsed
    return [parsed]


@app.callback()
def main() -> None:  # pragma: no cover - simple callback
    """criteo-shipper CLI.

    Use a subcommand like 'map' or 'send'.
    """
    _load_env()


@app.command("map", help="Map events to Criteo payloads and print them as JSON lines.")
def map_command(
    events_file: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True),
    pretty: bool = typer.Option(False, "--pretty/--compact", help="Indent JSON output"),
) -> None:
    settings = get_settings()
    logging.basicConfig(level=settings.LOG_LEVEL)
    invalid = 0
    for index, raw in enumerate(load_events(events_file)):
        try:
            event = NormalizedEvent.model_validate(raw)
        except ValidationError as e:
            invalid += 1
            typer.echo(f"#{index}: malformed event: {e.error_count()} error(s)", err=True)
            continue
        if event.type != "track":
            typer.echo(f"#{index}: skipped {event.type} call", err=True)
            continue
        try:
            ensure_valid(event)
        except InvalidEventError as e:
            invalid += 1
            typer.echo(f"#{index}: invalid event {event.event!r}: {e}", err=True)
            continue
        payload = map_event(event).to_wire()
        typer.echo(json.dumps(payload, indent=2 if pretty else None, ensure_ascii=False))
    if invalid:
        raise typer.Exit(code=1)


@app.command(help="Dispatch events to Criteo (respects DRY_RUN unless overridden).")
def send(
    events_file: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True),
    dry_run: Optional[bool] = typer.Option(
        None,
        "--dry-run/--no-dry-run",
        help="If true, map only and do not send. If not specified, uses DRY_RUN from config/env.",
    ),
    endpoint_url: Optional[str] = typer.Option(
        None, help="Fixed endpoint URL (overrides CRITEO_ENDPOINT_URL and regional routing)"
    ),
) -> None:
    """Validate, map and dispatch every event in EVENTS_FILE.

    Exits with code 1 when any event is invalid or fails delivery.
    """
    settings = get_settings()
    logging.basicConfig(level=settings.LOG_LEVEL)
    if endpoint_url:
        settings = settings.model_copy(update={"CRITEO_ENDPOINT_URL": endpoint_url})

    counts: Counter[str] = Counter()
    with CriteoShipper(settings, dry_run=dry_run) as shipper:
        effective_dry_run = shipper.dry_run
        for raw in load_events(events_file):
            outcome = shipper.dispatch(raw)
            counts[outcome.status] += 1
    summary = " ".join(f"{status}={n}" for status, n in sorted(counts.items()))
    typer.echo(f"Processed {sum(counts.values())} event(s). {summary} dry_run={effective_dry_run}")
    if counts[STATUS_INVALID] or counts[STATUS_FAILED]:
        raise typer.Exit(code=1)


if __name__ == "__main__":  # pragma: no cover
    app()
