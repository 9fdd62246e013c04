"""CLI interface for note-hashtags.

Commands:
    popular - Export notes for a hashtag, popularity-ranked
    recent  - Export notes for a hashtag, newest first
    setup   - Write a config file with output and timezone settings
"""

import sys
from pathlib import Path

import click

from .client import NoteAPIError, NoteClient, OrderMode
from .config import (
    CONFIG_FILE,
    AppConfig,
    OutputConfig,
    config_exists,
    load_config,
    save_config,
    validate_timezone,
)
from .converter import CsvRowSink, RowBuilder
from .logging_config import setup_logging
from .pipeline import collect


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.option("--config", type=click.Path(), default=None, help="Config file path")
@click.pass_context
def main(ctx, verbose, config):
    """note.com hashtag exporter — Save every note for a hashtag to CSV."""
    setup_logging(debug=verbose)
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = Path(config) if config else CONFIG_FILE


def _validate_hashtag(ctx, param, value):
    hashtag = value.strip().removeprefix("#")
    if not hashtag:
        raise click.BadParameter("hashtag must not be empty")
    return hashtag


def export_options(func):
    """Options shared by the popular and recent commands."""
    func = click.option(
        "--no-dump-raw",
        is_flag=True,
        help="Do not save raw API responses under the logs directory",
    )(func)
    func = click.option(
        "--logs-dir",
        type=click.Path(file_okay=False),
        default=None,
        help="Directory for raw API responses",
    )(func)
    func = click.option(
        "-o",
        "--output",
        type=click.Path(dir_okay=False),
        default=None,
        help="Output CSV file (default: result.csv)",
    )(func)
    func = click.option(
        "--hashtag",
        required=True,
        callback=_validate_hashtag,
        help="Hashtag to export, without the leading #",
    )(func)
    return func


def _export(ctx, order, hashtag, output, logs_dir, no_dump_raw):
    try:
        config = load_config(ctx.obj["config_path"])
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    output_path = Path(output) if output else config.output.csv_file
    raw_dir = None
    if not no_dump_raw and config.output.dump_raw:
        raw_dir = Path(logs_dir) if logs_dir else config.output.logs_dir

    click.echo(f"Hashtag: {hashtag}")

    row_builder = RowBuilder(tz=config.tz, site_url=config.site_url)
    try:
        with NoteClient(
            config.base_url, logs_dir=raw_dir, timeout=config.timeout
        ) as client, CsvRowSink(output_path) as sink:
            written = collect(
                client, hashtag, sink, order=order, row_builder=row_builder
            )
    except NoteAPIError as e:
        click.echo(f"Error: {e}", err=True)
        click.echo(f"Rows written before the failure remain in {output_path}", err=True)
        sys.exit(1)

    click.echo(f"Done! Wrote {written} rows to {output_path}")


@main.command()
@export_options
@click.pass_context
def popular(ctx, hashtag, output, logs_dir, no_dump_raw):
    """Export notes for a hashtag, ordered by popularity."""
    _export(ctx, OrderMode.POPULAR, hashtag, output, logs_dir, no_dump_raw)


@main.command()
@export_options
@click.pass_context
def recent(ctx, hashtag, output, logs_dir, no_dump_raw):
    """Export notes for a hashtag, newest first."""
    _export(ctx, OrderMode.RECENT, hashtag, output, logs_dir, no_dump_raw)


@main.command()
@click.pass_context
def setup(ctx):
    """Write a config file with output and timezone settings."""
    config_path = ctx.obj["config_path"]
    current = load_config(config_path) if config_exists(config_path) else AppConfig()

    click.echo("note-hashtags — Setup")
    click.echo("=" * 40)
    click.echo()

    csv_file = click.prompt("CSV output file", default=str(current.output.csv_file))
    logs_dir = click.prompt(
        "Raw response directory", default=str(current.output.logs_dir)
    )
    dump_raw = click.confirm("Save raw API responses?", default=current.output.dump_raw)
    timezone = click.prompt(
        "Timezone for dates",
        default=current.timezone,
        value_proc=_timezone_value,
    )

    config = AppConfig(
        output=OutputConfig(
            csv_file=Path(csv_file), logs_dir=Path(logs_dir), dump_raw=dump_raw
        ),
        base_url=current.base_url,
        site_url=current.site_url,
        timeout=current.timeout,
        timezone=timezone,
    )

    save_config(config, config_path)
    click.echo(f"\nConfig saved to {config_path}")
    click.echo("Run 'note-hashtags popular --hashtag <tag>' to export notes.")


def _timezone_value(value: str) -> str:
    try:
        return validate_timezone(value)
    except ValueError as e:
        raise click.UsageError(str(e)) from e
