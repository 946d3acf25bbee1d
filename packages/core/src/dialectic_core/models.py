"""Review data models shared by every stage of the pipeline.

All records here are plain dataclasses. Inputs that must never change once
created (changed files, rules, patterns, strategies) are frozen so the same
instance can be shared between catalogs and tests without interference.
"""

from __future__ import annotations

import re
from dataclasses import asdict, dataclass, field

# Lower rank = reviewed first.
TIER_RANK = {"critical": 0, "high": 1, "normal": 2, "low": 3}
TIERS = tuple(TIER_RANK)
DEFAULT_TIER = "low"
DEFAULT_TIER_REASON = "Unknown file type"

STRATEGY_NAMES = ("small", "medium", "large", "xlarge", "skip")

ISSUE_KINDS = ("bug", "security", "performance", "maintainability")
CRITICAL_KINDS = frozenset({"bug", "security"})
CONFIDENCE_LEVELS = ("high", "medium")


@dataclass(frozen=True)
class ChangedFile:
    """One file of a change set, already stripped of excluded paths upstream."""

    path: str
    content: str
    additions: int = 0
    deletions: int = 0


@dataclass(frozen=True)
class PriorityRule:
    """Maps a file path to a review tier.

    ``matcher`` is either a plain substring or a compiled regular expression.
    Only the path is inspected, never the content.
    """

    matcher: str | re.Pattern
    tier: str
    reason: str

    def matches(self, path: str) -> bool:
        if isinstance(self.matcher, str):
            return self.matcher in path
        return self.matcher.search(path) is not None


@dataclass(frozen=True)
class PrioritizedFile:
    path: str
    content: str
    tier: str
    reason: str
    additions: int = 0
    deletions: int = 0


@dataclass
class PackResult:
    """Outcome of packing prioritized files into a token budget."""

    included: list[PrioritizedFile] = field(default_factory=list)
    excluded: list[PrioritizedFile] = field(default_factory=list)
    tokens_used: int = 0


@dataclass(frozen=True)
class ReviewStrategy:
    name: str
    max_tokens: int
    context_token_budget: int
    instructions: str


@dataclass(frozen=True)
class FalsePositivePattern:
    """A class of issue the model tends to over-report.

    ``indicators`` are phrases that, when present in an issue's text, suggest
    the issue is one of these known non-issues. ``content_pattern`` and
    ``context_markers`` are optional signals checked against file content.
    """

    id: str
    category: str
    explanation: str
    indicators: tuple[str, ...] = ()
    content_pattern: re.Pattern | None = None
    context_markers: tuple[str, ...] | None = None
    severity: str | None = None


@dataclass(frozen=True)
class ReviewIssue:
    file: str
    kind: str
    confidence: str
    title: str
    description: str
    line: int | None = None
    suggestion: str | None = None

    @property
    def is_critical(self) -> bool:
        return self.kind in CRITICAL_KINDS


@dataclass(frozen=True)
class DetectedFramework:
    name: str
    confidence: str = "high"  # "high" | "medium" | "low"
    version: str | None = None


@dataclass(frozen=True)
class ContextFlags:
    critical_module: bool = False
    config_only: bool = False
    test_changed: bool = False
    schema_changed: bool = False


@dataclass
class ReviewContext:
    """Everything the orchestrator needs to know about a change besides its files."""

    framework: DetectedFramework
    affected_areas: list[str] = field(default_factory=list)
    flags: ContextFlags = field(default_factory=ContextFlags)
    diff_size: int = 0


@dataclass
class ReviewSummary:
    total_issues: int
    critical_issues: int
    affected_areas: list[str]
    overall_assessment: str


@dataclass
class ReviewMetadata:
    framework: str
    strategy: str
    tokens_used: int
    files_reviewed: int
    files_excluded: int
    duration_ms: int
    cost_usd: float = 0.0
    cache_read_tokens: int = 0
    cache_creation_tokens: int = 0
    false_positives_removed: int = 0


@dataclass
class ReviewResult:
    """Terminal output of one review invocation. Never persisted by the core."""

    issues: list[ReviewIssue]
    summary: ReviewSummary
    metadata: ReviewMetadata

    def to_dict(self) -> dict:
        return asdict(self)
