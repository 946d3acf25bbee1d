"""patterns command — list the false-positive patterns a review would apply."""

from __future__ import annotations

import click
from rich.console import Console
from rich.table import Table

from dialectic_core.frameworks import PROFILES, get_profile
from dialectic_core.reviewer import effective_catalog

from dialectic_cli.auth import load_cli_config

console = Console()

_SEVERITY_STYLE = {"critical": "red", "high": "yellow", "medium": "blue", "low": "dim"}


@click.command("patterns")
@click.option(
    "--framework",
    type=click.Choice(sorted(PROFILES)),
    default=None,
    help="Framework profile to include. Defaults to the configured framework, or vanilla.",
)
@click.option("--category", default=None, help="Only show patterns in this category.")
@click.pass_context
def patterns_cmd(ctx, framework: str | None, category: str | None):
    """Show the effective false-positive catalog.

    Combines the built-in patterns, the framework's patterns and any project
    patterns from the configuration file, after disabled ids are removed.
    """
    config = load_cli_config(ctx, overrides={"framework": framework})
    profile = get_profile(config.get("framework"))
    catalog = effective_catalog(config, profile)

    patterns = catalog.by_category(category) if category else list(catalog)
    if not patterns:
        console.print("[yellow]No false-positive patterns match.[/yellow]")
        return

    table = Table(title=f"False-Positive Patterns ({profile.label})", show_header=True)
    table.add_column("Id", style="bold")
    table.add_column("Category")
    table.add_column("Severity")
    table.add_column("Explanation")
    for p in patterns:
        severity = p.severity or "medium"
        style = _SEVERITY_STYLE.get(severity, "white")
        table.add_row(p.id, p.category, f"[{style}]{severity}[/{style}]", p.explanation)
    console.print(table)

    stats = catalog.stats()
    console.print(f"\n[bold]Total patterns:[/bold] {stats['total']}")
    by_category = Table(title="By Category", show_header=True)
    by_category.add_column("Category")
    by_category.add_column("Count", justify="right")
    for name, count in sorted(stats["by_category"].items(), key=lambda kv: (-kv[1], kv[0])):
        by_category.add_row(name, str(count))
    console.print(by_category)
