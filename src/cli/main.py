"""CLI entry point for the skills gap engine."""

from pathlib import Path

import click

from cli.commands import (
    analyze,
    db,
    department,
    departments,
    hiring,
    resource,
    training,
)
from cli.config import load_config_model
from cli.logging_config import setup_logging
from observability import log_run_summary


@click.group()
@click.version_option(version="0.1.0")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.option(
    "-c",
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Config file (default: ./config.yaml or ~/.skills-gap/config.yaml)",
)
@click.pass_context
def cli(ctx, verbose: bool, config_path):
    """Skills gap analysis: coverage, project demand and market trends."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path

    config = load_config_model(config_path)
    level = "DEBUG" if verbose else config.logging.level
    setup_logging(json_mode=config.logging.json_mode, level=level, log_file=config.paths.log_file)


@cli.result_callback()
def _after_command(*_, **__):
    log_run_summary()


cli.add_command(analyze)
cli.add_command(department)
cli.add_command(resource)
cli.add_command(departments)
cli.add_command(training)
cli.add_command(hiring)
cli.add_command(db)


if __name__ == "__main__":
    cli()
