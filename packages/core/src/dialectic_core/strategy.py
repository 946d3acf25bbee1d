"""Review strategy selection from change size and risk flags."""

from __future__ import annotations

import logging
import math
from dataclasses import replace

from dialectic_core.models import STRATEGY_NAMES, ReviewStrategy

logger = logging.getLogger(__name__)

CRITICAL_BOOST = 1.5
CONFIG_ONLY_INSTRUCTIONS = "Quick review of configuration changes only."

DEFAULT_STRATEGIES: dict[str, ReviewStrategy] = {
    "small": ReviewStrategy(
        name="small",
        max_tokens=16000,
        context_token_budget=4000,
        instructions="Comprehensive review of all changes with detailed feedback.",
    ),
    "medium": ReviewStrategy(
        name="medium",
        max_tokens=12000,
        context_token_budget=3000,
        instructions="Focus on critical issues and potential bugs. Skip minor style suggestions.",
    ),
    "large": ReviewStrategy(
        name="large",
        max_tokens=8000,
        context_token_budget=2000,
        instructions="Focus only on critical security and bug issues. No style or minor suggestions.",
    ),
    "xlarge": ReviewStrategy(
        name="xlarge",
        max_tokens=4000,
        context_token_budget=1000,
        instructions="Critical security issues only. Very large change - recommend splitting.",
    ),
    "skip": ReviewStrategy(
        name="skip",
        max_tokens=0,
        context_token_budget=0,
        instructions="Change is too large for meaningful review. Please split it into smaller pull requests.",
    ),
}

# Exclusive upper bounds in bytes of total diff size. Anything at or above the
# last bound is "skip".
SIZE_BOUNDS: tuple[tuple[int, str], ...] = (
    (51_200, "small"),  # 50 KB
    (153_600, "medium"),  # 150 KB
    (204_800, "large"),  # 200 KB
    (819_200, "xlarge"),  # 800 KB
)

_OVERRIDABLE_FIELDS = ("max_tokens", "context_token_budget", "instructions")


def tier_for_size(diff_size: int) -> str:
    for bound, name in SIZE_BOUNDS:
        if diff_size < bound:
            return name
    return "skip"


class StrategySelector:
    """Maps (diff size, critical module, config only) to a ReviewStrategy.

    Overrides registered through ``set_override`` or the constructor replace
    the numeric budgets or instructions of a tier for every later selection.
    A tier's name can never be changed.
    """

    def __init__(self, overrides: dict[str, dict] | None = None):
        self._strategies = dict(DEFAULT_STRATEGIES)
        for name, fields in (overrides or {}).items():
            self.set_override(name, **fields)

    def set_override(self, name: str, **fields) -> ReviewStrategy:
        if name not in self._strategies:
            raise ValueError(f"Unknown strategy tier: {name!r}. Choose one of {', '.join(STRATEGY_NAMES)}.")
        fields.pop("name", None)
        unknown = set(fields) - set(_OVERRIDABLE_FIELDS)
        if unknown:
            raise ValueError(f"Cannot override {', '.join(sorted(unknown))} on strategy {name!r}.")
        for key in ("max_tokens", "context_token_budget"):
            if key in fields and (not isinstance(fields[key], int) or isinstance(fields[key], bool) or fields[key] < 0):
                raise ValueError(f"Strategy {name!r}: {key} must be a non-negative integer.")
        self._strategies[name] = replace(self._strategies[name], **fields)
        return self._strategies[name]

    def strategies(self) -> dict[str, ReviewStrategy]:
        return dict(self._strategies)

    def select(self, diff_size: int, critical_module: bool = False, config_only: bool = False) -> ReviewStrategy:
        if config_only:
            # Size and critical-module flags are ignored on this path.
            logger.info("Config-only changes detected, using small strategy")
            return replace(self._strategies["small"], instructions=CONFIG_ONLY_INSTRUCTIONS)

        strategy = self._strategies[tier_for_size(diff_size)]

        if critical_module:
            logger.info("Critical module detected, boosting token budget by %d%%", round((CRITICAL_BOOST - 1) * 100))
            strategy = replace(
                strategy,
                max_tokens=math.floor(strategy.max_tokens * CRITICAL_BOOST),
                context_token_budget=math.floor(strategy.context_token_budget * CRITICAL_BOOST),
            )

        logger.info("Selected strategy: %s (%d tokens)", strategy.name, strategy.max_tokens)
        return strategy

    @staticmethod
    def describe(strategy: ReviewStrategy) -> str:
        return (
            f"Strategy: {strategy.name.upper()}\n"
            f"Max Tokens: {strategy.max_tokens}\n"
            f"Context Budget: {strategy.context_token_budget}\n"
            f"Instructions: {strategy.instructions}"
        )
