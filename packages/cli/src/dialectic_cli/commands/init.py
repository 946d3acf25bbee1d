"""init command — interactive setup wizard for new teams.

Writes .dialectic.yml and optionally a GitHub Actions workflow so every
subsequent pull request is reviewed in CI without per-developer setup.
"""

from __future__ import annotations

import importlib.metadata
import logging
import subprocess
from pathlib import Path

import click
import yaml
from rich.console import Console

from dialectic_core.config import CONFIG_FILE
from dialectic_core.frameworks import PROFILES

console = Console()
logger = logging.getLogger(__name__)

WORKFLOW_PATH = Path(".github/workflows/dialectic.yml")

_WORKFLOW_TEMPLATE = """\
name: Dialectic Review

on:
  pull_request:
    types: [opened, synchronize, reopened]

jobs:
  review:
    runs-on: ubuntu-latest
    permissions:
      contents: read
      pull-requests: write

    steps:
      - uses: actions/checkout@v4

      - name: Set up Python
        uses: actions/setup-python@v5
        with:
          python-version: "3.12"

      - name: Install dialectic
        run: pip install "dialectic[{provider}]=={version}"

      - name: Run PR review
        env:
          GITHUB_TOKEN: ${{{{ secrets.GITHUB_TOKEN }}}}
          {api_key_env}: ${{{{ secrets.{api_key_env} }}}}
        run: |
          dialectic review \\
            --repo ${{{{ github.repository }}}} \\
            --pr ${{{{ github.event.pull_request.number }}}} \\
            --yes
"""


@click.command("init")
@click.option("--repo", default=None, help="GitHub repository (owner/name). Auto-detected from git remote.")
def init_cmd(repo: str | None):
    """Set up dialectic for your team.

    Creates .dialectic.yml and generates a GitHub Actions workflow.
    """
    console.print("\n[bold cyan]dialectic init[/bold cyan] — team setup wizard\n")

    if repo is None:
        repo = _detect_repo_from_git()
        if repo:
            console.print(f"[dim]Detected repository: {repo}[/dim]")
        else:
            repo = click.prompt("GitHub repository (owner/name)")

    provider = click.prompt(
        "AI provider",
        type=click.Choice(["anthropic", "openai"]),
        default="anthropic",
    )
    api_key_env = "ANTHROPIC_API_KEY" if provider == "anthropic" else "OPENAI_API_KEY"

    framework = click.prompt(
        "Framework (auto = detect from package.json)",
        type=click.Choice(["auto", *PROFILES]),
        default="auto",
    )
    max_input_tokens = click.prompt("Token budget for diff content", type=int, default=60000)

    config: dict = {"model": provider, "max_input_tokens": max_input_tokens}
    if framework != "auto":
        config["framework"] = framework

    _write_config(config)
    console.print(f"[green]Created {CONFIG_FILE}[/green]")

    if click.confirm(f"\nGenerate {WORKFLOW_PATH} for GitHub Actions?", default=True):
        _write_workflow(provider, api_key_env)
        console.print(f"[green]Created {WORKFLOW_PATH}[/green]")
        console.print(
            f"\n[yellow]Remember to add [bold]{api_key_env}[/bold] to your "
            "GitHub repository secrets (Settings → Secrets → Actions).[/yellow]"
        )

    console.print("\n[bold green]Setup complete![/bold green]")
    console.print(f"Run a review with: [bold]dialectic review --repo {repo} --pr <number>[/bold]")


def _detect_repo_from_git() -> str | None:
    """Try to detect the GitHub repo slug from the git remote URL."""
    try:
        result = subprocess.run(
            ["git", "remote", "get-url", "origin"],
            capture_output=True,
            text=True,
            timeout=5,
        )
    except (FileNotFoundError, subprocess.TimeoutExpired):
        logger.debug("git is not available to detect the repository")
        return None
    if result.returncode != 0:
        return None
    url = result.stdout.strip()
    # https://github.com/owner/repo.git  →  owner/repo
    # git@github.com:owner/repo.git      →  owner/repo
    if "github.com" not in url:
        return None
    slug = url.split("github.com")[-1].lstrip("/:").removesuffix(".git")
    return slug if "/" in slug else None


def _write_config(config: dict) -> None:
    """Write or update .dialectic.yml, preserving any existing keys."""
    path = Path(CONFIG_FILE)
    existing: dict = {}
    if path.exists():
        existing = yaml.safe_load(path.read_text()) or {}
    existing.update(config)
    path.write_text(yaml.dump(existing, default_flow_style=False, sort_keys=False))


def _get_version() -> str:
    """Read the current dialectic version from the installed package metadata."""
    try:
        return importlib.metadata.version("dialectic")
    except importlib.metadata.PackageNotFoundError:
        return "0.1.0"


def _write_workflow(provider: str, api_key_env: str) -> None:
    WORKFLOW_PATH.parent.mkdir(parents=True, exist_ok=True)
    WORKFLOW_PATH.write_text(
        _WORKFLOW_TEMPLATE.format(provider=provider, api_key_env=api_key_env, version=_get_version())
    )
