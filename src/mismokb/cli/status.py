"""mkb status command - show ingestion marker and row counts."""

import datetime as dt
from pathlib import Path

import click
from rich.table import Table

from mismokb.cli.utils import echo_json, open_store
from mismokb.core.progress import get_console, status


@click.command()
@click.option("--db", type=click.Path(dir_okay=False, path_type=Path), help="Store database file")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def status_command(ctx: click.Context, db: Path | None, as_json: bool) -> None:
    """Show knowledge store status."""
    store = open_store(ctx, db)
    try:
        info = store.status()
    finally:
        store.close()

    if as_json:
        echo_json(info.to_dict())
        return

    if not info.ingested:
        status(f"Not ingested: {info.db_path}", style="warning")
        status("Run 'mkb ingest SOURCE' to build it", style="info")
        return

    completed = (
        dt.datetime.fromtimestamp(info.completed_at).isoformat(timespec="seconds")
        if info.completed_at
        else "unknown"
    )
    status(f"Ingested: {info.db_path}", style="success")
    status(f"Source: {info.source_path}", style="info", indent=2)
    status(f"Completed: {completed}", style="info", indent=2)

    table = Table(show_header=True, header_style="bold")
    table.add_column("Table")
    table.add_column("Rows", justify="right")
    for name, count in info.counts.items():
        table.add_row(name, str(count))
    get_console().print(table)
