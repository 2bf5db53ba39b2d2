"""CLI for the hotel calendar engine: inspect snapshots and configs."""

from __future__ import annotations

import json
import logging
import sys
from datetime import date, datetime
from pathlib import Path

import click

from hotel_calendar.calendar.aggregator import DomainCollections, aggregate_with_stats
from hotel_calendar.calendar.models import ProjectedView
from hotel_calendar.config import CalendarConfig, ConfigError, load_config
from hotel_calendar.core.logging import configure_logging
from hotel_calendar.engine import CalendarEngine

logger = logging.getLogger(__name__)


def _load_config_or_exit(config_path: Path | None) -> CalendarConfig:
    try:
        return load_config(config_path)
    except ConfigError as exc:
        click.echo(f"Config error: {exc}", err=True)
        sys.exit(1)


def _load_snapshot(snapshot: Path) -> DomainCollections:
    try:
        data = json.loads(snapshot.read_text())
    except json.JSONDecodeError as exc:
        click.echo(f"Invalid snapshot JSON in {snapshot}: {exc}", err=True)
        sys.exit(1)
    return DomainCollections.from_mapping(data)


def _render_view(view: ProjectedView) -> None:
    for cell in view.cells:
        marker = "*" if cell.is_today else " "
        click.echo(f"{marker}{cell.day.isoformat()} {cell.day.strftime('%a')}")
        if view.granularity == "month":
            for event in cell.visible:
                click.echo(f"    {event.display_time:<8} {event.title}")
            if cell.overflow:
                click.echo(f"    +{cell.overflow} more")
        else:
            for placement in cell.placements:
                click.echo(
                    f"    {placement.hour:02d}:{placement.minute:02d} "
                    f"[{placement.top:g}] {placement.event.title}"
                )


config_option = click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="calendar.toml file or directory containing one",
)


@click.group()
@click.version_option(version="0.1.0")
@click.option("--log-level", default=None, help="Override the configured log level")
@click.pass_context
def cli(ctx: click.Context, log_level: str | None) -> None:
    """Hotel calendar: unified agenda, spa, CRM, task and group timeline."""
    ctx.ensure_object(dict)
    ctx.obj["log_level"] = log_level


def _setup_logging(ctx: click.Context, config: CalendarConfig) -> None:
    level = ctx.obj.get("log_level") or config.logging.level
    log_file = Path(config.logging.log_file) if config.logging.log_file else None
    configure_logging(
        level=level,
        fmt=config.logging.format,
        log_file=log_file,
        property_name=config.property_name,
    )


@cli.command()
@click.argument("snapshot", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--view", "granularity", type=click.Choice(["day", "week", "month"]), default=None)
@click.option("--date", "reference", type=click.DateTime(formats=["%Y-%m-%d"]), default=None)
@config_option
@click.pass_context
def show(
    ctx: click.Context,
    snapshot: Path,
    granularity: str | None,
    reference: datetime | None,
    config_path: Path | None,
) -> None:
    """Print the bucketed calendar view for a JSON snapshot."""
    config = _load_config_or_exit(config_path)
    _setup_logging(ctx, config)

    reference_date: date | None = reference.date() if reference is not None else None
    engine = CalendarEngine(
        config,
        collections=_load_snapshot(snapshot),
        reference_date=reference_date,
    )
    if granularity is not None:
        engine.set_granularity(granularity)

    view = engine.render()
    if view.is_empty:
        click.echo("No events to display")
        return
    _render_view(view)


@cli.command()
@click.argument("snapshot", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@config_option
@click.option("--json", "as_json", is_flag=True, help="Emit canonical events as JSON")
@click.pass_context
def events(ctx: click.Context, snapshot: Path, config_path: Path | None, as_json: bool) -> None:
    """List the canonical events aggregated from a JSON snapshot."""
    config = _load_config_or_exit(config_path)
    _setup_logging(ctx, config)

    result = aggregate_with_stats(config.domains, _load_snapshot(snapshot), config.tzinfo)
    ordered = sorted(result.events, key=lambda event: event.start)
    if as_json:
        click.echo(json.dumps([event.model_dump(mode="json") for event in ordered], indent=2))
        return

    for event in ordered:
        click.echo(f"{event.id:<24} {event.start.isoformat():<27} {event.title}")
    dropped = sum(result.dropped.values())
    if dropped:
        click.echo(f"({dropped} record(s) without a usable date skipped)")


@cli.command("check-config")
@click.argument("path", type=click.Path(exists=True, path_type=Path))
def check_config(path: Path) -> None:
    """Validate a calendar.toml file."""
    try:
        config = load_config(path)
    except ConfigError as exc:
        click.echo(f"ERROR: {exc}")
        sys.exit(1)
    enabled = ", ".join(domain.value for domain in config.domains.active_domains()) or "(none)"
    summary = f"OK: timezone={config.timezone} view={config.default_view} domains={enabled}"
    if config.property_name:
        summary = f"{summary} property={config.property_name}"
    click.echo(summary)


def main() -> None:
    cli()
