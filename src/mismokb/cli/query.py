"""mkb query commands - thin adapters over QueryEngine, printing JSON."""

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import click

from mismokb.cli.utils import echo_json, get_config, open_store, require_ingested
from mismokb.mapping.legacy import LegacyFieldMapper
from mismokb.mapping.narrative import NarrativeExtractor
from mismokb.query.engine import QueryEngine

_db_option = click.option(
    "--db", type=click.Path(dir_okay=False, path_type=Path), help="Store database file"
)


def _run(ctx: click.Context, db: Path | None, operation: Callable[[QueryEngine], Any]) -> None:
    store = open_store(ctx, db)
    try:
        require_ingested(store)
        result = operation(QueryEngine.from_config(store, get_config(ctx)))
    finally:
        store.close()
    echo_json(result.to_dict())


@click.group()
def query_group() -> None:
    """Query the ingested data dictionary."""


@query_group.command("field")
@click.argument("path")
@_db_option
@click.pass_context
def field_command(ctx: click.Context, path: str, db: Path | None) -> None:
    """Detail for PATH (Class.Property)."""
    _run(ctx, db, lambda engine: engine.field_info(path))


@query_group.command("feature")
@click.argument("name")
@_db_option
@click.pass_context
def feature_command(ctx: click.Context, name: str, db: Path | None) -> None:
    """Fields related to a feature word (kitchen, bathroom, exterior, ...)."""
    _run(ctx, db, lambda engine: engine.fields_for_feature(name))


@query_group.command("enum")
@click.argument("name")
@_db_option
@click.pass_context
def enum_command(ctx: click.Context, name: str, db: Path | None) -> None:
    """Permissible values of enumeration NAME."""
    _run(ctx, db, lambda engine: engine.enum_values(name))


@query_group.command("required")
@click.argument("entity")
@click.argument("use_case")
@_db_option
@click.pass_context
def required_command(ctx: click.Context, entity: str, use_case: str, db: Path | None) -> None:
    """Required-field checklist for ENTITY and USE_CASE."""
    _run(ctx, db, lambda engine: engine.required_fields(entity, use_case))


@query_group.command("relationships")
@click.argument("entity")
@_db_option
@click.pass_context
def relationships_command(ctx: click.Context, entity: str, db: Path | None) -> None:
    """Entities and ingested edges related to ENTITY."""
    _run(ctx, db, lambda engine: engine.relationships(entity))


@query_group.command("validate")
@click.argument("record")
@click.option("--context", default="general", show_default=True, help="Validation context label")
@click.option("--legacy", is_flag=True, help="Translate legacy keys before validating")
@_db_option
@click.pass_context
def validate_command(
    ctx: click.Context, record: str, context: str, legacy: bool, db: Path | None
) -> None:
    """Validate RECORD, a JSON object of field path -> value."""
    try:
        data = json.loads(record)
    except json.JSONDecodeError as e:
        raise click.BadParameter(f"not valid JSON: {e}", param_hint="RECORD") from e
    if not isinstance(data, dict):
        raise click.BadParameter("must be a JSON object", param_hint="RECORD")
    _run(ctx, db, lambda engine: engine.validate(data, context, translate_legacy=legacy))


@query_group.command("narrative")
@click.argument("text")
@click.pass_context
def narrative_command(ctx: click.Context, text: str) -> None:
    """Extract canonical fields from descriptive TEXT."""
    extractor = NarrativeExtractor.from_config(get_config(ctx).narrative)
    echo_json(extractor.parse(text).to_dict())


@query_group.command("legacy")
@click.argument("names", nargs=-1, required=True)
@click.pass_context
def legacy_command(ctx: click.Context, names: tuple[str, ...]) -> None:
    """Suggest canonical paths for legacy field NAMES."""
    mapper = LegacyFieldMapper.from_config(get_config(ctx).legacy)
    echo_json([mapper.suggest(name).to_dict() for name in names])
