"""Cost calculation for token usage.

Prices are USD per 1M tokens. Cache pricing follows Anthropic's scheme:
write = 1.25x input, read = 0.1x input. OpenAI models have no cache write
price; cached input is billed at half the input price.
"""

from __future__ import annotations

from typing import Protocol


class UsageLike(Protocol):
    input_tokens: int
    output_tokens: int
    cache_read_tokens: int
    cache_creation_tokens: int


PROVIDER_PRICES: dict[str, dict[str, float]] = {
    "claude-sonnet-4-20250514": {
        "input": 3.00,
        "output": 15.00,
        "cache_write": 3.75,
        "cache_read": 0.30,
    },
    "claude-opus-4-20250514": {
        "input": 15.00,
        "output": 75.00,
        "cache_write": 18.75,
        "cache_read": 1.50,
    },
    "claude-3-5-haiku-20241022": {
        "input": 0.80,
        "output": 4.00,
        "cache_write": 1.00,
        "cache_read": 0.08,
    },
    "gpt-4o": {
        "input": 2.50,
        "output": 10.00,
        "cache_write": 0.0,
        "cache_read": 1.25,
    },
    "gpt-4o-mini": {
        "input": 0.15,
        "output": 0.60,
        "cache_write": 0.0,
        "cache_read": 0.075,
    },
}


def calculate_cost(usage: UsageLike, model: str) -> float:
    """Return the USD cost of ``usage`` on ``model``, or 0.0 for unknown models."""
    prices = PROVIDER_PRICES.get(model)
    if prices is None:
        return 0.0

    return (
        usage.input_tokens / 1_000_000 * prices["input"]
        + usage.output_tokens / 1_000_000 * prices["output"]
        + usage.cache_creation_tokens / 1_000_000 * prices["cache_write"]
        + usage.cache_read_tokens / 1_000_000 * prices["cache_read"]
    )
