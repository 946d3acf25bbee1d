"""Single-call two-persona consensus review.

One completion request carries the whole protocol: "Hawk" raises every
plausible concern and "Owl" keeps only the ones both would endorse. The
request is split into segments so a caching-capable backend can reuse the
stable ones:

    protocol (cacheable) + pattern catalog (cacheable)
        + framework guidance (cacheable) + task (never cached)

The response is validated against an explicit pydantic schema. Anything the
model returns that cannot be read as ``{"issues": [...]}`` becomes a
ParseFailure value rather than an exception.
"""

from __future__ import annotations

import json
import logging
import re
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from dialectic_core.false_positive.catalog import PatternCatalog
from dialectic_core.false_positive.matcher import PatternMatcher
from dialectic_core.frameworks import get_profile
from dialectic_core.models import (
    CONFIDENCE_LEVELS,
    ISSUE_KINDS,
    PackResult,
    ReviewContext,
    ReviewIssue,
    ReviewMetadata,
    ReviewResult,
    ReviewStrategy,
    ReviewSummary,
)

if TYPE_CHECKING:
    from dialectic_core.providers.base import BaseProvider

logger = logging.getLogger(__name__)

NO_ISSUES_ASSESSMENT = "No significant issues found. Code looks good."
PARSE_FAILURE_ASSESSMENT = "Failed to parse review response"
SKIP_ASSESSMENT = "Review skipped: change is too large for meaningful review. Please split it into smaller pull requests."
PLACEHOLDER_ASSESSMENT = "Brief 1-2 sentence summary"

# Characters of project conventions allowed per context token.
CHARS_PER_TOKEN = 4

CONSENSUS_PROTOCOL = """\
# AGENT CONSENSUS REVIEW SYSTEM

You are TWO distinct code review personas working together to provide high-quality, \
actionable feedback on a pull request.

## PERSONA A: "Hawk" (The Critical Reviewer)
- Finds potential issues, bugs, security vulnerabilities
- Tends to raise concerns and ask questions
- Focuses on edge cases and error handling
- Looks for type-safety and language-specific issues

## PERSONA B: "Owl" (The Pragmatic Validator)
- Validates Hawk's concerns against project context
- Considers false positive patterns
- Filters out noise and non-actionable feedback
- Ensures recommendations are practical and ROI-positive

## REVIEW PROCESS (Internal Dialogue)

1. **Hawk** reviews the diff and identifies potential issues
2. **Owl** validates each issue against:
   - The project's known false positive patterns
   - The framework's conventions
   - Context and project conventions
   - ROI (Is this worth mentioning?)
3. **Both personas must agree** before reporting an issue
4. Only report issues that meet ALL of these criteria:
   - Not explained by a known false positive pattern
   - Prevents production bugs
   - High confidence (not speculation)
   - High ROI (valuable to fix)

## REMEMBER

- **Quality over quantity**: One actionable issue is better than ten noisy ones
- **Be specific**: Always include file path and line number when possible
- **Be pragmatic**: Only report issues worth fixing
- **Respect patterns**: Don't flag known false positives
- **Framework-aware**: Apply framework-specific knowledge"""

RESPONSE_SCHEMA = """\
Return your response in JSON format ONLY, with no additional text before or after:

```json
{
  "issues": [
    {
      "file": "path/to/file.ts",
      "line": 42,
      "type": "bug|security|performance|maintainability",
      "confidence": "high|medium",
      "title": "Brief title",
      "description": "Clear explanation",
      "suggestion": "Optional fix recommendation"
    }
  ],
  "consensus": {
    "totalReviewed": 10,
    "issuesRaised": 2,
    "issuesFiltered": 5,
    "overallAssessment": "Brief 1-2 sentence summary"
  }
}
```

If no consensus issues are found, return an empty "issues" array and say so in "overallAssessment"."""


# --------------------------------------------------------------------------- #
# Request                                                                      #
# --------------------------------------------------------------------------- #


@dataclass(frozen=True)
class PromptSegment:
    text: str
    cacheable: bool = False


@dataclass(frozen=True)
class ReviewRequest:
    """Everything a provider needs for one completion call."""

    segments: tuple[PromptSegment, ...]
    max_tokens: int
    response_schema: str = RESPONSE_SCHEMA

    @property
    def system_segments(self) -> list[PromptSegment]:
        return [s for s in self.segments if s.cacheable]

    @property
    def task(self) -> str:
        return "\n\n".join(s.text for s in self.segments if not s.cacheable)


def format_catalog(catalog: PatternCatalog) -> str:
    if not catalog:
        return "## FALSE POSITIVE PATTERNS TO IGNORE\n\nNo custom patterns defined."
    blocks = [
        f"### {p.id}\n"
        f"- **Category**: {p.category}\n"
        f"- **Explanation**: {p.explanation}\n"
        f"- **Indicators**: {', '.join(p.indicators)}"
        for p in catalog
    ]
    return "## FALSE POSITIVE PATTERNS TO IGNORE\n\n" + "\n\n".join(blocks)


def framework_guidance(framework_name: str) -> str:
    profile = get_profile(framework_name)
    return f"## FRAMEWORK GUIDANCE: {profile.label}\n\n{profile.guidance}\n\n```yaml\n{profile.instructions}\n```"


def format_packed_diff(packed: PackResult) -> str:
    return "\n\n".join(f"# File: {f.path}\n# Priority: {f.tier} ({f.reason})\n\n{f.content}" for f in packed.included)


def _yes_no(flag: bool) -> str:
    return "YES" if flag else "No"


def build_task(
    context: ReviewContext,
    strategy: ReviewStrategy,
    packed: PackResult,
    conventions: str = "",
) -> str:
    framework = context.framework
    flags = context.flags
    sections = [
        "## PROJECT CONTEXT",
        f"### Framework: {framework.name} {framework.version or ''}".rstrip(),
        f"### Affected Areas\n{', '.join(context.affected_areas) or 'None'}",
        "### Context Flags\n"
        f"- Critical Module: {_yes_no(flags.critical_module)}\n"
        f"- Test Changed: {_yes_no(flags.test_changed)}\n"
        f"- Schema Changed: {_yes_no(flags.schema_changed)}\n"
        f"- Config Only: {_yes_no(flags.config_only)}",
    ]

    conventions = conventions.strip()
    if conventions:
        limit = strategy.context_token_budget * CHARS_PER_TOKEN
        if len(conventions) > limit:
            logger.debug("Truncating project conventions from %d to %d chars", len(conventions), limit)
            conventions = conventions[:limit]
        if conventions:
            sections.append(f"### Project Conventions\n\n{conventions}")

    sections.append(f"## REVIEW STRATEGY: {strategy.name.upper()}\n\n{strategy.instructions}")
    sections.append(f"## DIFF TO REVIEW\n\n```diff\n{format_packed_diff(packed)}\n```")
    sections.append(f"## OUTPUT FORMAT\n\n{RESPONSE_SCHEMA}")
    return "\n\n".join(sections)


def build_review_request(
    context: ReviewContext,
    strategy: ReviewStrategy,
    catalog: PatternCatalog,
    packed: PackResult,
    conventions: str = "",
) -> ReviewRequest:
    return ReviewRequest(
        segments=(
            PromptSegment(CONSENSUS_PROTOCOL, cacheable=True),
            PromptSegment(format_catalog(catalog), cacheable=True),
            PromptSegment(framework_guidance(context.framework.name), cacheable=True),
            PromptSegment(build_task(context, strategy, packed, conventions), cacheable=False),
        ),
        max_tokens=strategy.max_tokens,
    )


# --------------------------------------------------------------------------- #
# Response                                                                     #
# --------------------------------------------------------------------------- #


class IssuePayload(BaseModel):
    """One issue as returned by the model. Bad values fall back to defaults."""

    model_config = ConfigDict(extra="ignore")

    file: str = "unknown"
    line: int | None = None
    type: str = "maintainability"
    confidence: str = "medium"
    title: str = "Issue"
    description: str = ""
    suggestion: str | None = None

    @field_validator("file", mode="before")
    @classmethod
    def _file(cls, v: Any) -> str:
        return v if isinstance(v, str) and v else "unknown"

    @field_validator("line", mode="before")
    @classmethod
    def _line(cls, v: Any) -> int | None:
        if isinstance(v, bool):
            return None
        if isinstance(v, int):
            return v
        if isinstance(v, str) and v.strip().isdigit():
            return int(v)
        return None

    @field_validator("type", mode="before")
    @classmethod
    def _type(cls, v: Any) -> str:
        return v if v in ISSUE_KINDS else "maintainability"

    @field_validator("confidence", mode="before")
    @classmethod
    def _confidence(cls, v: Any) -> str:
        return v if v in CONFIDENCE_LEVELS else "medium"

    @field_validator("title", mode="before")
    @classmethod
    def _title(cls, v: Any) -> str:
        return str(v) if v else "Issue"

    @field_validator("description", mode="before")
    @classmethod
    def _description(cls, v: Any) -> str:
        return str(v) if v else ""

    @field_validator("suggestion", mode="before")
    @classmethod
    def _suggestion(cls, v: Any) -> str | None:
        return str(v) if v else None

    def to_issue(self) -> ReviewIssue:
        return ReviewIssue(
            file=self.file,
            line=self.line,
            kind=self.type,
            confidence=self.confidence,
            title=self.title,
            description=self.description,
            suggestion=self.suggestion,
        )


class ConsensusPayload(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    total_reviewed: int | None = Field(default=None, alias="totalReviewed")
    issues_raised: int | None = Field(default=None, alias="issuesRaised")
    issues_filtered: int | None = Field(default=None, alias="issuesFiltered")
    overall_assessment: str | None = Field(default=None, alias="overallAssessment")

    @field_validator("total_reviewed", "issues_raised", "issues_filtered", mode="before")
    @classmethod
    def _count(cls, v: Any) -> int | None:
        return v if isinstance(v, int) and not isinstance(v, bool) else None

    @field_validator("overall_assessment", mode="before")
    @classmethod
    def _assessment(cls, v: Any) -> str | None:
        return v if isinstance(v, str) else None

    @property
    def usable_assessment(self) -> str | None:
        text = (self.overall_assessment or "").strip()
        if not text or text == PLACEHOLDER_ASSESSMENT:
            return None
        return text


@dataclass
class ParsedReview:
    issues: list[ReviewIssue] = field(default_factory=list)
    consensus: ConsensusPayload | None = None


@dataclass
class ParseFailure:
    raw: str
    reason: str


_OUTER_FENCE_START = re.compile(r"^```(?:json)?\s*")
_OUTER_FENCE_END = re.compile(r"\s*```$")
_EMBEDDED_BLOCK = re.compile(r"```json\s*\n(.*?)\n\s*```", re.DOTALL)


def _extract_json(text: str) -> str:
    stripped = text.strip()
    if stripped.startswith("{") and stripped.endswith("}"):
        return stripped
    # A fenced block with prose before or after it.
    match = _EMBEDDED_BLOCK.search(stripped)
    if match:
        return match.group(1)
    # Strip only the outer fence, never backticks inside string values.
    cleaned = _OUTER_FENCE_START.sub("", stripped)
    return _OUTER_FENCE_END.sub("", cleaned.strip())


def parse_review_response(text: str) -> ParsedReview | ParseFailure:
    try:
        data = json.loads(_extract_json(text or ""))
    except json.JSONDecodeError as e:
        logger.warning("Failed to parse review response as JSON: %s", (text or "")[:200])
        return ParseFailure(raw=text, reason=f"invalid JSON: {e}")

    if not isinstance(data, dict):
        logger.warning("Review response is not a JSON object: %s", (text or "")[:200])
        return ParseFailure(raw=text, reason="response is not a JSON object")

    raw_issues = data.get("issues")
    if not isinstance(raw_issues, list):
        logger.warning("Review response has no 'issues' array: %s", (text or "")[:200])
        return ParseFailure(raw=text, reason="'issues' is missing or not an array")

    issues = []
    for entry in raw_issues:
        if not isinstance(entry, dict):
            logger.debug("Dropping non-object issue entry: %r", entry)
            continue
        issues.append(IssuePayload.model_validate(entry).to_issue())

    consensus = None
    if isinstance(data.get("consensus"), dict):
        try:
            consensus = ConsensusPayload.model_validate(data["consensus"])
        except ValidationError as e:
            logger.debug("Ignoring malformed consensus block: %s", e)

    return ParsedReview(issues=issues, consensus=consensus)


def summarize(issues: list[ReviewIssue], affected_areas: list[str], assessment: str | None = None) -> ReviewSummary:
    critical = sum(1 for i in issues if i.is_critical)
    if not assessment:
        if not issues:
            assessment = NO_ISSUES_ASSESSMENT
        elif critical:
            assessment = f"Found {critical} critical issue(s) that should be addressed before merging."
        else:
            assessment = f"Found {len(issues)} issue(s) to consider for improved code quality."
    return ReviewSummary(
        total_issues=len(issues),
        critical_issues=critical,
        affected_areas=list(affected_areas),
        overall_assessment=assessment,
    )


# --------------------------------------------------------------------------- #
# Orchestrator                                                                 #
# --------------------------------------------------------------------------- #


class ReviewOrchestrator:
    """Runs one consensus review against a completion provider.

    Provider errors are not caught here: a failed call must never look like
    a clean review.
    """

    def __init__(self, provider: BaseProvider | None, conventions: str = "", validate_issues: bool = True):
        self.provider = provider
        self.conventions = conventions
        self.validate_issues = validate_issues

    def review(
        self,
        context: ReviewContext,
        strategy: ReviewStrategy,
        catalog: PatternCatalog,
        packed: PackResult,
    ) -> ReviewResult:
        if strategy.name == "skip":
            logger.info("Strategy is skip, not calling the completion service")
            return self._skipped(context, strategy, packed)

        if self.provider is None:
            raise ValueError("A completion provider is required for a non-skip review")

        request = build_review_request(context, strategy, catalog, packed, self.conventions)

        start = time.monotonic()
        completion = self.provider.complete(request)
        duration_ms = int((time.monotonic() - start) * 1000)

        parsed = parse_review_response(completion.text)
        removed = 0
        if isinstance(parsed, ParseFailure):
            logger.warning("Review response could not be parsed: %s", parsed.reason)
            issues: list[ReviewIssue] = []
            assessment = PARSE_FAILURE_ASSESSMENT
        else:
            issues = parsed.issues
            assessment = parsed.consensus.usable_assessment if parsed.consensus else None
            if self.validate_issues and catalog:
                contents = {f.path: f.content for f in packed.included}
                filtered = PatternMatcher(catalog).filter_issues(issues, contents)
                issues = filtered.filtered
                removed = len(filtered.removed)
                if removed:
                    # The model's assessment described issues that are gone now.
                    assessment = None

        usage = completion.usage
        result = ReviewResult(
            issues=issues,
            summary=summarize(issues, context.affected_areas, assessment),
            metadata=ReviewMetadata(
                framework=context.framework.name,
                strategy=strategy.name,
                tokens_used=usage.input_tokens + usage.output_tokens,
                files_reviewed=len(packed.included),
                files_excluded=len(packed.excluded),
                duration_ms=duration_ms,
                cost_usd=usage.cost_usd,
                cache_read_tokens=usage.cache_read_tokens,
                cache_creation_tokens=usage.cache_creation_tokens,
                false_positives_removed=removed,
            ),
        )
        logger.info(
            "Review generated with %d issue(s) in %dms (cost $%.4f)",
            len(issues),
            duration_ms,
            usage.cost_usd,
        )
        return result

    @staticmethod
    def _skipped(context: ReviewContext, strategy: ReviewStrategy, packed: PackResult) -> ReviewResult:
        return ReviewResult(
            issues=[],
            summary=summarize([], context.affected_areas, SKIP_ASSESSMENT),
            metadata=ReviewMetadata(
                framework=context.framework.name,
                strategy=strategy.name,
                tokens_used=0,
                files_reviewed=0,
                files_excluded=len(packed.included) + len(packed.excluded),
                duration_ms=0,
            ),
        )
