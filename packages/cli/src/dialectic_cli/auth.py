"""GitHub token resolution with gh CLI fallback.

Resolution order (stops at first success):
  1. GITHUB_TOKEN environment variable (CI / explicit override)
  2. `gh auth token` (GitHub CLI session, works after `gh auth login`)
"""

from __future__ import annotations

import logging
import os
import subprocess

import click

from dialectic_core.config import load_config
from dialectic_core.errors import ConfigError

logger = logging.getLogger(__name__)


def resolve_github_token() -> str | None:
    """Return a GitHub token or None if no valid source is available.

    Never raises — callers should check for None and emit a UsageError.
    """
    token = os.environ.get("GITHUB_TOKEN")
    if token:
        return token

    try:
        result = subprocess.run(
            ["gh", "auth", "token"],
            capture_output=True,
            text=True,
            timeout=5,
        )
        if result.returncode == 0:
            gh_token = result.stdout.strip()
            if gh_token:
                logger.debug("Resolved GitHub token via gh CLI session.")
                return gh_token
    except (FileNotFoundError, subprocess.TimeoutExpired):
        # gh is not installed or timed out.
        logger.debug("gh CLI not available for token resolution.")

    return None


def load_cli_config(ctx: click.Context, overrides: dict | None = None) -> dict:
    """Load configuration for a subcommand, turning ConfigError into a CLI error."""
    config_path = (ctx.obj or {}).get("config_path", ".dialectic.yml")
    try:
        return load_config(config_path, cli_overrides=overrides)
    except ConfigError as e:
        raise click.ClickException(f"Invalid configuration in {config_path}: {e}") from e
