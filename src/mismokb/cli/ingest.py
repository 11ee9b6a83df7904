"""mkb ingest command - build the knowledge store from an XMI export."""

from pathlib import Path

import click

from mismokb.cli.utils import get_config, open_store
from mismokb.core.errors import MismoKBError
from mismokb.core.progress import pluralize, spinner, status


@click.command()
@click.argument(
    "source",
    required=False,
    type=click.Path(dir_okay=False, path_type=Path),
)
@click.option("--db", type=click.Path(dir_okay=False, path_type=Path), help="Store database file")
@click.option("--force", is_flag=True, help="Rebuild even when the store is current")
@click.pass_context
def ingest_command(ctx: click.Context, source: Path | None, db: Path | None, force: bool) -> None:
    """Ingest SOURCE (an XMI schema export) into the knowledge store.

    SOURCE defaults to store.source_path from config. The store is rebuilt
    only when it is missing, stale, or --force is given.
    """
    config = get_config(ctx)
    if source is None:
        if not config.store.source_path:
            raise click.UsageError("No SOURCE given and store.source_path is not configured")
        source = Path(config.store.source_path).expanduser()

    store = open_store(ctx, db)
    try:
        with spinner(f"Ingesting {source.name}"):
            outcome = store.ensure_ingested(source, force=force)
    except MismoKBError as e:
        raise click.ClickException(str(e)) from e
    finally:
        store.close()

    counts = outcome.counts
    if not outcome.rebuilt:
        status(f"Knowledge store is current: {store.db_path}", style="success")
    else:
        status(f"Ingested {source} into {store.db_path}", style="success")
        for reason in outcome.reasons:
            status(reason, style="info", indent=2)
    status(
        ", ".join(
            [
                pluralize(counts.get("classes", 0), "class", "classes"),
                pluralize(counts.get("properties", 0), "property", "properties"),
                pluralize(counts.get("enumerations", 0), "enumeration"),
                pluralize(counts.get("enum_values", 0), "enum value"),
                pluralize(counts.get("relationships", 0), "relationship"),
            ]
        ),
        style="info",
        indent=2,
    )
