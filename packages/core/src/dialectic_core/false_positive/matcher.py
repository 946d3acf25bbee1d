"""Scores review issues against a false-positive catalog."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from dialectic_core.false_positive.catalog import PatternCatalog
from dialectic_core.models import FalsePositivePattern, ReviewIssue

logger = logging.getLogger(__name__)

INDICATOR_WEIGHT = 1.0
CONTENT_PATTERN_WEIGHT = 0.5
CONTEXT_MARKER_WEIGHT = 0.3
MISSING_CONTEXT_PENALTY = 0.5
MATCH_THRESHOLD = 0.3


@dataclass(frozen=True)
class MatchResult:
    is_false_positive: bool
    confidence: float = 0.0
    pattern: FalsePositivePattern | None = None
    matched_indicators: tuple[str, ...] = ()

    def describe(self) -> str:
        if not self.pattern:
            return "no match"
        return f"{self.pattern.id} ({self.confidence:.0%}): {self.pattern.explanation}"


NO_MATCH = MatchResult(is_false_positive=False)


@dataclass(frozen=True)
class RemovedIssue:
    issue: ReviewIssue
    reason: MatchResult


@dataclass
class FilterResult:
    filtered: list[ReviewIssue] = field(default_factory=list)
    removed: list[RemovedIssue] = field(default_factory=list)


def _issue_text(issue: ReviewIssue) -> str:
    return f"{issue.title} {issue.description} {issue.suggestion or ''}".lower()


def score_pattern(pattern: FalsePositivePattern, issue_text: str, file_content: str | None = None) -> MatchResult:
    """Score one pattern against the lowercased issue text.

    Content signals only count when the file content is supplied, but the
    normalizing maximum always includes every signal the pattern declares.
    """
    matched = tuple(i for i in pattern.indicators if i.lower() in issue_text)
    score = INDICATOR_WEIGHT * len(matched)

    if pattern.content_pattern is not None and file_content:
        if pattern.content_pattern.search(file_content):
            score += CONTENT_PATTERN_WEIGHT

    if pattern.context_markers and file_content:
        if any(marker in file_content for marker in pattern.context_markers):
            score += CONTEXT_MARKER_WEIGHT
        else:
            score -= MISSING_CONTEXT_PENALTY

    max_score = (
        INDICATOR_WEIGHT * len(pattern.indicators)
        + (CONTENT_PATTERN_WEIGHT if pattern.content_pattern is not None else 0)
        + (CONTEXT_MARKER_WEIGHT if pattern.context_markers else 0)
    )
    confidence = min(max(score / max_score, 0.0), 1.0) if max_score > 0 else 0.0

    is_false_positive = bool(matched) and confidence >= MATCH_THRESHOLD
    return MatchResult(
        is_false_positive=is_false_positive,
        confidence=confidence,
        pattern=pattern if is_false_positive else None,
        matched_indicators=matched,
    )


class PatternMatcher:
    """Partitions review issues into kept and known-false-positive sets.

    Patterns are tried in catalog order and the first one that declares a
    match wins. An issue matching no indicator phrase is always kept.
    """

    def __init__(self, catalog: PatternCatalog | Iterable[FalsePositivePattern] = ()):
        self.catalog = catalog if isinstance(catalog, PatternCatalog) else PatternCatalog(catalog)

    def check_issue(self, issue: ReviewIssue, file_content: str | None = None) -> MatchResult:
        text = _issue_text(issue)
        for pattern in self.catalog:
            result = score_pattern(pattern, text, file_content)
            if result.is_false_positive:
                logger.debug("False positive: %r matched pattern %s", issue.title, pattern.id)
                return result
        return NO_MATCH

    def filter_issues(
        self,
        issues: Iterable[ReviewIssue],
        file_contents: Mapping[str, str] | None = None,
    ) -> FilterResult:
        result = FilterResult()
        total = 0
        for issue in issues:
            total += 1
            content = file_contents.get(issue.file) if file_contents else None
            match = self.check_issue(issue, content)
            if match.is_false_positive:
                result.removed.append(RemovedIssue(issue=issue, reason=match))
            else:
                result.filtered.append(issue)

        if result.removed:
            logger.info("Filtered %d false positive(s) from %d issue(s)", len(result.removed), total)
        return result
