"""review command — run a consensus review on a pull request."""

from __future__ import annotations

import click
from rich.console import Console

from dialectic_core.errors import CompletionError
from dialectic_core.frameworks import PROFILES
from dialectic_core.gh.pull_request import get_pull_requests, get_repo
from dialectic_core.reviewer import run_review

from dialectic_cli.auth import load_cli_config, resolve_github_token

console = Console()


@click.command("review")
@click.option("--repo", required=True, help="GitHub repository in owner/name format.")
@click.option(
    "--pr",
    "pr_number",
    type=int,
    default=None,
    help="Pull request number. Omit to list open PRs interactively.",
)
@click.option(
    "--model",
    type=click.Choice(["anthropic", "openai"]),
    default=None,
    help="AI model provider. Overrides config file.",
)
@click.option(
    "--framework",
    type=click.Choice(sorted(PROFILES)),
    default=None,
    help="Framework profile to use instead of detecting it from package.json.",
)
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation prompts.")
@click.option(
    "--shadow",
    "-s",
    is_flag=True,
    help="Dry-run mode: print the review without posting to GitHub.",
)
@click.pass_context
def review_cmd(
    ctx,
    repo: str,
    pr_number: int | None,
    model: str | None,
    framework: str | None,
    yes: bool,
    shadow: bool,
):
    """Review a pull request with a single budgeted consensus call.

    Ranks the changed files, packs as many as fit into the token budget,
    picks a review strategy from the change size, and asks the model to
    report only the issues both review personas agree on.

    \b
    Required environment variables:
      GITHUB_TOKEN         GitHub personal access token (or use gh CLI)
      ANTHROPIC_API_KEY    Required when using --model anthropic
      OPENAI_API_KEY       Required when using --model openai
    """
    config = load_cli_config(ctx, overrides={"model": model, "framework": framework})

    # Resolve token: env var first, then gh CLI session.
    token = resolve_github_token()
    if not token:
        raise click.UsageError(
            "No GitHub token found. Set GITHUB_TOKEN or run `gh auth login` first.\n"
            "Create a token at https://github.com/settings/tokens"
        )
    config["github_token"] = token

    if config["model"] == "anthropic" and not config.get("anthropic_api_key"):
        raise click.UsageError("ANTHROPIC_API_KEY environment variable is not set.")
    if config["model"] == "openai" and not config.get("openai_api_key"):
        raise click.UsageError("OPENAI_API_KEY environment variable is not set.")

    this_repo = get_repo(repo, token=token)

    if pr_number is None:
        prs = list(get_pull_requests(this_repo))
        if not prs:
            console.print("[yellow]No open pull requests found.[/yellow]")
            return
        console.print("\nOpen pull requests:")
        for pr in prs:
            console.print(f"  [bold]#{pr.number}[/bold]  {pr.title}")
        pr_number = click.prompt("\nEnter the pull request number", type=int)

    try:
        run_review(
            repo=repo,
            pr_number=pr_number,
            config=config,
            auto_confirm=yes,
            shadow=shadow,
            repo_obj=this_repo,
        )
    except CompletionError as e:
        raise click.ClickException(f"Review failed: {e}") from e
    except ValueError as e:
        raise click.ClickException(str(e)) from e
