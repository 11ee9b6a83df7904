"""CLI utilities."""

import json
from pathlib import Path
from typing import Any

import click

from mismokb.config.loader import resolve_db_path
from mismokb.config.models import MismoKBConfig
from mismokb.store.knowledge import KnowledgeStore


def get_config(ctx: click.Context) -> MismoKBConfig:
    obj = ctx.find_root().obj or {}
    config = obj.get("config")
    if config is None:
        config = MismoKBConfig()
    return config


def open_store(ctx: click.Context, db: Path | None) -> KnowledgeStore:
    """Open the store named by --db, else the configured one."""
    config = get_config(ctx)
    root = (ctx.find_root().obj or {}).get("root") or Path.cwd()
    db_path = db.resolve() if db is not None else resolve_db_path(config, root)
    return KnowledgeStore.from_config(config, db_path).open()


def require_ingested(store: KnowledgeStore) -> KnowledgeStore:
    """Fail with a hint when no complete ingestion exists.

    Raises:
        click.ClickException: If the store has no completion marker
    """
    if store.queries.marker() is None:
        raise click.ClickException(
            f"Knowledge store at {store.db_path} is empty. Run 'mkb ingest SOURCE' first."
        )
    return store


def echo_json(payload: Any) -> None:
    click.echo(json.dumps(payload, indent=2))
