"""File prioritization and token-budget packing.

Every changed file gets a review tier from an ordered rule list (first match
wins). Files are then sorted by tier and packed greedily into the token budget
available for diff content, highest tier first.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Sequence

from dialectic_core.errors import ConfigError
from dialectic_core.models import (
    DEFAULT_TIER,
    DEFAULT_TIER_REASON,
    TIER_RANK,
    TIERS,
    ChangedFile,
    PackResult,
    PrioritizedFile,
    PriorityRule,
)
from dialectic_core.utils.code import estimate_tokens

logger = logging.getLogger(__name__)

# How many excluded files are listed individually in the packing warning.
_EXCLUDED_PREVIEW = 5

_TEST_PATH = r"(?:\.(?:test|spec)\.|(?:^|/)(?:tests|__tests__)/|(?:^|/)test_[^/]*\.py$|_test\.(?:py|go)$)"
_CODE_EXT = r"\.(?:ts|tsx|js|jsx|mjs|cjs|py|java|go|rb|rs)$"

# Evaluated before any framework rules: security directories stay critical
# and tests stay low whatever the profile says.
PINNED_PRIORITY_RULES: tuple[PriorityRule, ...] = (
    PriorityRule(re.compile(r"(?:^|/)(?:auth|payments|billing|security)/"), "critical", "Security-critical module"),
    PriorityRule(re.compile(_TEST_PATH), "low", "Test file"),
)

DEFAULT_PRIORITY_RULES: tuple[PriorityRule, ...] = (
    PriorityRule(re.compile(r"\.(?:controller|guard|middleware)\.(?:ts|js)$"), "critical", "HTTP security layer"),
    PriorityRule(re.compile(r"(?:^|/)(?:controllers|guards|middleware)/"), "critical", "HTTP security layer"),
    PriorityRule(re.compile(r"[._](?:service|repository|handler)\.(?:ts|js|py)$"), "high", "Business layer"),
    PriorityRule(re.compile(r"\.(?:entity|schema|model)\.(?:ts|js)$|(?:^|/)(?:models|schemas)\.py$"), "high", "Database schema"),
    PriorityRule(re.compile(rf"(?:^|/)src/.*{_CODE_EXT}"), "high", "Source code"),
    PriorityRule(re.compile(_CODE_EXT), "normal", "Code file"),
    PriorityRule(re.compile(r"\.(?:md|txt|rst|json|ya?ml|toml|ini|cfg)$"), "low", "Config/Doc file"),
)


def rule_from_dict(data: dict) -> PriorityRule:
    """Build a PriorityRule from configuration data.

    ``{"pattern": "src/core/", "tier": "high", "reason": "Core"}`` matches by
    substring; add ``"regex": true`` to compile the pattern instead.
    """
    pattern = data.get("pattern")
    tier = data.get("tier")
    if not pattern or not isinstance(pattern, str):
        raise ConfigError("Each priority rule needs a string 'pattern'", key="priority_rules")
    if tier not in TIER_RANK:
        raise ConfigError(f"Invalid priority tier {tier!r}; choose one of {', '.join(TIERS)}", key="priority_rules")
    matcher: str | re.Pattern = pattern
    if data.get("regex"):
        try:
            matcher = re.compile(pattern)
        except re.error as e:
            raise ConfigError(f"Invalid priority rule regex {pattern!r}: {e}", key="priority_rules") from e
    return PriorityRule(matcher=matcher, tier=tier, reason=data.get("reason") or "Custom rule")


def sort_by_tier(files: Iterable[PrioritizedFile]) -> list[PrioritizedFile]:
    # sorted() is stable, so files sharing a tier keep their original order.
    return sorted(files, key=lambda f: TIER_RANK[f.tier])


class FilePrioritizer:
    """Assigns review tiers to changed files and packs them into a token budget.

    Rules are evaluated as
    ``pinned_rules + leading_rules + builtin_rules + custom_rules``. The pinned
    rules (security directories, test files) cannot be overridden; framework
    rules come next, ahead of the remaining built-ins, and project rules from
    configuration are appended. Built-ins are never removed.
    """

    def __init__(
        self,
        custom_rules: Sequence[PriorityRule] = (),
        leading_rules: Sequence[PriorityRule] = (),
        builtin_rules: Sequence[PriorityRule] = DEFAULT_PRIORITY_RULES,
        pinned_rules: Sequence[PriorityRule] = PINNED_PRIORITY_RULES,
    ):
        self._pinned = tuple(pinned_rules)
        self._leading = tuple(leading_rules)
        self._builtin = tuple(builtin_rules)
        self._custom = tuple(custom_rules)

    @property
    def rules(self) -> tuple[PriorityRule, ...]:
        return self._pinned + self._leading + self._builtin + self._custom

    def add_custom_rules(self, rules: Iterable[PriorityRule]) -> None:
        self._custom = self._custom + tuple(rules)

    def assign(self, path: str) -> tuple[str, str]:
        """Return ``(tier, reason)`` for a path from the first matching rule."""
        for rule in self.rules:
            if rule.matches(path):
                return rule.tier, rule.reason
        return DEFAULT_TIER, DEFAULT_TIER_REASON

    def prioritize(self, files: Iterable[ChangedFile]) -> list[PrioritizedFile]:
        prioritized = []
        for f in files:
            tier, reason = self.assign(f.path)
            prioritized.append(
                PrioritizedFile(
                    path=f.path,
                    content=f.content,
                    tier=tier,
                    reason=reason,
                    additions=f.additions,
                    deletions=f.deletions,
                )
            )
        return sort_by_tier(prioritized)

    def truncate_to_token_limit(self, files: Sequence[PrioritizedFile], token_limit: int) -> PackResult:
        """Pack files into ``token_limit`` estimated tokens, in the given order.

        A file that does not fit is excluded but scanning continues, so a
        large high-tier file never blocks smaller files further down the list.
        """
        result = PackResult()
        for f in files:
            file_tokens = estimate_tokens(f.content)
            if result.tokens_used + file_tokens <= token_limit:
                result.included.append(f)
                result.tokens_used += file_tokens
            else:
                result.excluded.append(f)

        if result.excluded:
            logger.warning("Token limit reached. %d file(s) excluded from review:", len(result.excluded))
            for f in result.excluded[:_EXCLUDED_PREVIEW]:
                logger.warning("   - %s (%s: %s)", f.path, f.tier, f.reason)
            if len(result.excluded) > _EXCLUDED_PREVIEW:
                logger.warning("   ... and %d more", len(result.excluded) - _EXCLUDED_PREVIEW)

        logger.info("Included %d file(s) (~%d tokens), excluded %d", len(result.included), result.tokens_used, len(result.excluded))
        return result

    @staticmethod
    def priority_stats(files: Iterable[PrioritizedFile]) -> dict[str, int]:
        stats = {tier: 0 for tier in TIERS}
        for f in files:
            stats[f.tier] += 1
        return stats
