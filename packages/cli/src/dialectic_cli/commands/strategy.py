"""strategy command — preview the review strategy for a change size."""

from __future__ import annotations

import click
from rich.console import Console

from dialectic_core.strategy import StrategySelector

from dialectic_cli.auth import load_cli_config

console = Console()


@click.command("strategy")
@click.option("--size", type=click.IntRange(min=0), required=True, help="Total diff size in bytes.")
@click.option("--critical", is_flag=True, help="The change touches a critical module.")
@click.option("--config-only", is_flag=True, help="Every changed file is a configuration file.")
@click.pass_context
def strategy_cmd(ctx, size: int, critical: bool, config_only: bool):
    """Show which review strategy a change of SIZE bytes would get.

    Strategy overrides from the configuration file are applied.
    """
    config = load_cli_config(ctx)
    strategy = StrategySelector(config.get("strategies")).select(
        size, critical_module=critical, config_only=config_only
    )
    console.print(StrategySelector.describe(strategy), highlight=False)
