"""Core PR review pipeline."""

from __future__ import annotations

import logging

from github import GithubException
from rich.console import Console

from dialectic_core.analyzer import analyze_changes
from dialectic_core.config import load_conventions, priority_rules, project_patterns
from dialectic_core.consensus import ReviewOrchestrator
from dialectic_core.false_positive.builtin import BUILTIN_PATTERNS
from dialectic_core.false_positive.catalog import PatternCatalog, build_effective_catalog
from dialectic_core.frameworks import FrameworkProfile, detect_framework, get_profile
from dialectic_core.gh.pull_request import (
    SUMMARY_MARKER,
    get_diff,
    get_pull,
    get_repo,
    post_comment,
    read_package_json,
    read_text_file,
)
from dialectic_core.models import ChangedFile, DetectedFramework, ReviewContext, ReviewResult
from dialectic_core.prioritizer import FilePrioritizer
from dialectic_core.providers.anthropic import AnthropicProvider
from dialectic_core.providers.openai import OpenAIProvider
from dialectic_core.strategy import StrategySelector
from dialectic_core.utils.code import DEFAULT_EXCLUDES, is_code_file, is_excluded
from dialectic_core.utils.secrets import redact_secrets

console = Console()
logger = logging.getLogger(__name__)

TITLE = "## Dialectic PR Review"

_KIND_COLOR = {"security": "red", "bug": "red", "performance": "yellow", "maintainability": "blue"}


def _get_provider(config: dict):
    model = config["model"]
    if model == "anthropic":
        return AnthropicProvider(api_key=config["anthropic_api_key"], model=config.get("model_name"))
    if model == "openai":
        return OpenAIProvider(api_key=config["openai_api_key"], model=config.get("model_name"))
    raise ValueError(f"Unknown model provider: {model!r}. Choose 'anthropic' or 'openai'.")


def effective_catalog(config: dict, profile: FrameworkProfile) -> PatternCatalog:
    """Built-in, framework and project false-positive patterns for one review."""
    return build_effective_catalog(
        BUILTIN_PATTERNS,
        framework_patterns=profile.patterns,
        project_patterns=project_patterns(config),
        disabled_ids=config.get("disabled_builtin_patterns", []),
        framework_overrides=config.get("framework_specific", {}).get(profile.name),
    )


def build_changed_files(diff_files, config: dict) -> tuple[list[ChangedFile], list[str]]:
    """Turn PR files into ChangedFile records, dropping excluded and binary paths.

    Patches are truncated to ``max_chars_per_file`` and secrets are redacted
    before anything can reach the completion service.
    """
    max_chars = config.get("max_chars_per_file", 20000)
    exclude_patterns = DEFAULT_EXCLUDES + list(config.get("exclude", []))

    files: list[ChangedFile] = []
    skipped: list[str] = []
    for f in diff_files:
        if is_excluded(f.filename, exclude_patterns) or not is_code_file(f.filename) or not f.patch:
            skipped.append(f.filename)
            continue

        patch = f.patch
        if len(patch) > max_chars:
            patch = patch[:max_chars] + "\n... [diff truncated]"
        patch, redacted = redact_secrets(patch)
        if redacted:
            logger.warning("Redacted %d potential secret(s) in %s", redacted, f.filename)

        files.append(ChangedFile(path=f.filename, content=patch, additions=f.additions, deletions=f.deletions))
    return files, skipped


def format_skip_notice(diff_size: int) -> str:
    return (
        f"{TITLE}\n\n"
        f"**PR Too Large**: This PR is too large for meaningful review ({diff_size / 1024:.1f} KB).\n\n"
        "Please split this into smaller PRs for better review quality."
    )


def format_review_body(result: ReviewResult, context: ReviewContext) -> str:
    """Render a ReviewResult as the Markdown body of a PR comment."""
    meta = result.metadata
    framework = context.framework
    lines = [
        TITLE,
        "",
        f"**Framework**: {framework.name} {framework.version or ''}".rstrip(),
        f"**Strategy**: {meta.strategy}",
        f"**Files Reviewed**: {meta.files_reviewed}",
        "",
    ]
    if result.summary.affected_areas:
        lines += [f"**Affected Areas**: {', '.join(result.summary.affected_areas)}", ""]

    lines += ["### Summary", "", result.summary.overall_assessment, ""]

    if result.issues:
        lines += ["### Issues", ""]
        for issue in result.issues:
            location = f"`{issue.file}`" + (f" (Line {issue.line})" if issue.line else "")
            lines += [
                f"#### [{issue.kind.upper()}] {issue.title}",
                "",
                f"**File**: {location}",
                f"**Confidence**: {issue.confidence}",
                "",
                issue.description,
            ]
            if issue.suggestion:
                lines += ["", "**Suggestion**:", "", issue.suggestion]
            lines += ["", "---", ""]

    lines += [
        "### Metadata",
        "",
        f"- Tokens Used: {meta.tokens_used:,}",
        f"- Duration: {meta.duration_ms / 1000:.2f}s",
        f"- Cost: ${meta.cost_usd:.4f}",
    ]
    if meta.files_excluded:
        lines.append(f"- Files Excluded (token budget): {meta.files_excluded}")
    if meta.false_positives_removed:
        lines.append(f"- Known False Positives Filtered: {meta.false_positives_removed}")
    return "\n".join(lines)


def print_shadow_review(result: ReviewResult) -> None:
    """Print the review to the terminal without posting to GitHub."""
    if not result.issues:
        console.print(f"[green]Shadow mode: {result.summary.overall_assessment}[/green]")
        return
    console.print(f"\n[bold]Shadow review — {len(result.issues)} issue(s) (not posted)[/bold]\n")
    for issue in result.issues:
        color = _KIND_COLOR.get(issue.kind, "white")
        line = f"  line [bold]{issue.line}[/bold]" if issue.line else ""
        console.print(
            f"[bold cyan]{issue.file}[/bold cyan]{line}  [{color}]{issue.kind.upper()}[/{color}]  {issue.title}"
        )
        console.print(f"  {issue.description}")
        if issue.suggestion:
            console.print(f"  [dim]Suggestion: {issue.suggestion}[/dim]")
        console.print()
    console.print(f"[bold]{result.summary.overall_assessment}[/bold]")


def run_review(
    repo: str,
    pr_number: int,
    config: dict,
    auto_confirm: bool = False,
    shadow: bool = False,
    repo_obj=None,
    provider=None,
) -> ReviewResult | None:
    """Run the full PR review pipeline and return the ReviewResult.

    Returns None only on early exits (draft skip, declined confirmation).
    A change too large to review still returns a result, after posting a
    "please split" notice instead of calling the model.
    """
    this_repo = repo_obj if repo_obj is not None else get_repo(repo, token=config["github_token"])

    try:
        this_pr = get_pull(this_repo, pr_number)
    except GithubException:
        raise ValueError(f"PR #{pr_number} not found in {repo}.")

    if this_pr.draft and not config.get("review_draft_prs", False):
        console.print(
            "[yellow]Skipping draft PR. Set review_draft_prs: true in .dialectic.yml to review drafts.[/yellow]"
        )
        return None

    head_sha = this_pr.head.sha
    diff_files = sorted(get_diff(this_pr), key=lambda f: f.filename)
    files, skipped = build_changed_files(diff_files, config)
    for name in skipped:
        console.print(f"  Skipping: {name}")
    console.print(f"[cyan]{len(files)} file(s) to review, {len(skipped)} skipped.[/cyan]")

    if config.get("framework"):
        framework = DetectedFramework(name=config["framework"], confidence="high")
    else:
        framework = detect_framework(read_package_json(this_repo, head_sha))
    profile = get_profile(framework.name)

    context = analyze_changes(files, framework, profile)
    strategy = StrategySelector(config.get("strategies")).select(
        context.diff_size,
        critical_module=context.flags.critical_module,
        config_only=context.flags.config_only,
    )
    console.print(f"[cyan]Framework: {profile.label} · Strategy: {strategy.name.upper()}[/cyan]")

    prioritizer = FilePrioritizer(custom_rules=priority_rules(config), leading_rules=profile.priority_rules)
    prioritized = prioritizer.prioritize(files)
    packed = prioritizer.truncate_to_token_limit(prioritized, config.get("max_input_tokens", 60000))
    stats = FilePrioritizer.priority_stats(prioritized)
    console.print("[dim]Priorities: " + ", ".join(f"{tier} {count}" for tier, count in stats.items()) + "[/dim]")

    catalog = effective_catalog(config, profile)

    if strategy.name == "skip":
        orchestrator = ReviewOrchestrator(provider=None)
        result = orchestrator.review(context, strategy, catalog, packed)
        body = format_skip_notice(context.diff_size)
    else:
        conventions = load_conventions(
            config.get("conventions", []), lambda path: read_text_file(this_repo, path, head_sha)
        )
        orchestrator = ReviewOrchestrator(
            provider=provider if provider is not None else _get_provider(config),
            conventions=conventions,
            validate_issues=config.get("validate_issues", True),
        )
        console.print(f"Reviewing {len(packed.included)} file(s) with {len(catalog)} known false-positive pattern(s)...")
        result = orchestrator.review(context, strategy, catalog, packed)
        body = format_review_body(result, context)

    if shadow:
        if strategy.name == "skip":
            console.print("[yellow]Shadow mode: change is too large to review; a split notice would be posted.[/yellow]")
        else:
            print_shadow_review(result)
        return result

    if not auto_confirm:
        answer = input(f"Post review comment with {len(result.issues)} issue(s)? (y/n): ").strip().lower()
        if answer != "y":
            return None

    post_comment(this_pr, f"{body}\n\n{SUMMARY_MARKER}")
    console.print(f"\n[green]Review posted: {result.summary.overall_assessment}[/green]")
    return result
