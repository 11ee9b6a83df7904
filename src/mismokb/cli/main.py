"""mismokb CLI - mkb command."""

from pathlib import Path

import click

from mismokb.cli.ingest import ingest_command
from mismokb.cli.query import query_group
from mismokb.cli.status import status_command
from mismokb.config.loader import load_config
from mismokb.core.errors import ConfigError
from mismokb.core.logging import configure_logging


@click.group()
@click.version_option(version="0.1.0", prog_name="mkb")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.option(
    "--config-root",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory holding .mismokb/config.yaml (default: current directory)",
)
@click.option(
    "--config",
    "config_file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Config file to use instead of <root>/.mismokb/config.yaml",
)
@click.pass_context
def cli(
    ctx: click.Context, verbose: bool, config_root: Path | None, config_file: Path | None
) -> None:
    """mismokb - MISMO data dictionary knowledge base."""
    root = (config_root or Path.cwd()).resolve()
    try:
        config = load_config(root, config_file=config_file)
    except ConfigError as e:
        raise click.ClickException(str(e)) from e

    if verbose:
        config.logging.level = "DEBUG"
    configure_logging(config=config.logging)

    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["root"] = root
    ctx.obj["config"] = config


cli.add_command(ingest_command, name="ingest")
cli.add_command(status_command, name="status")
cli.add_command(query_group, name="query")


if __name__ == "__main__":
    cli()
