"""Tests for token cost calculation."""

import pytest

from dialectic_core.providers.base import TokenUsage
from dialectic_core.providers.pricing import PROVIDER_PRICES, calculate_cost


class TestCalculateCost:
    def test_input_and_output(self):
        usage = TokenUsage(input_tokens=1_000_000, output_tokens=1_000_000)
        assert calculate_cost(usage, "claude-sonnet-4-20250514") == pytest.approx(18.0)

    def test_cache_tokens_use_cache_prices(self):
        usage = TokenUsage(input_tokens=0, output_tokens=0, cache_read_tokens=1_000_000, cache_creation_tokens=1_000_000)
        assert calculate_cost(usage, "claude-sonnet-4-20250514") == pytest.approx(0.30 + 3.75)

    def test_small_usage(self):
        usage = TokenUsage(input_tokens=2000, output_tokens=500)
        assert calculate_cost(usage, "gpt-4o") == pytest.approx(0.005 + 0.005)

    def test_unknown_model_is_free(self):
        assert calculate_cost(TokenUsage(input_tokens=10**6, output_tokens=10**6), "mystery-model") == 0.0

    def test_every_model_prices_all_kinds(self):
        for prices in PROVIDER_PRICES.values():
            assert set(prices) == {"input", "output", "cache_write", "cache_read"}
