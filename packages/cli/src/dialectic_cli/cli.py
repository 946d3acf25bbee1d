"""CLI entry point for dialectic.

Commands:
  review    — run a budgeted consensus review on a pull request
  init      — interactive setup wizard for new teams
  patterns  — list the effective false-positive catalog
  strategy  — show which review strategy a change size would get
"""

from __future__ import annotations

import importlib.metadata
import logging

import click
from rich.console import Console
from rich.logging import RichHandler

from dialectic_cli.commands.init import init_cmd
from dialectic_cli.commands.patterns import patterns_cmd
from dialectic_cli.commands.review import review_cmd
from dialectic_cli.commands.strategy import strategy_cmd

console = Console()

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True, show_path=False)],
        force=True,
    )


@click.group()
@click.version_option(
    version=importlib.metadata.version("dialectic"),
    prog_name="dialectic",
)
@click.option(
    "--config",
    "config_path",
    default=".dialectic.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="DIALECTIC_CONFIG",
)
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default="WARNING",
    show_default=True,
    help="Verbosity of diagnostic logging (written to stderr).",
)
@click.pass_context
def main(ctx: click.Context, config_path: str, log_level: str):
    """Budgeted two-persona consensus review for GitHub pull requests."""
    _configure_logging(log_level.upper())
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


main.add_command(review_cmd)
main.add_command(init_cmd)
main.add_command(patterns_cmd)
main.add_command(strategy_cmd)
