"""
Unit tests for token estimation and pricing calculations.

Tests token approximation, cost accuracy, fallback pricing and linearity.
"""

import pytest
from decimal import Decimal

from prompt_playground.core.pricing import estimate_cost, PRICING_TABLE
from prompt_playground.core.token_counter import UsageSummary, estimate_tokens


class TestUsageSummary:
    """Test UsageSummary dataclass."""

    def test_total_tokens_calculation(self):
        """Verify total_tokens is computed correctly."""
        usage = UsageSummary(prompt_tokens=100, completion_tokens=50)
        assert usage.total_tokens == 150

    def test_zero_tokens(self):
        """Verify zero token handling."""
        usage = UsageSummary(prompt_tokens=0, completion_tokens=0)
        assert usage.total_tokens == 0

    def test_cost_defaults_to_unknown(self):
        """Verify cost is None until reported or estimated."""
        usage = UsageSummary(prompt_tokens=1, completion_tokens=1)
        assert usage.cost is None

    def test_negative_values_rejected(self):
        """Verify negative token counts and costs are rejected."""
        with pytest.raises(ValueError, match="prompt_tokens"):
            UsageSummary(prompt_tokens=-1, completion_tokens=0)
        with pytest.raises(ValueError, match="completion_tokens"):
            UsageSummary(prompt_tokens=0, completion_tokens=-1)
        with pytest.raises(ValueError, match="cost"):
            UsageSummary(prompt_tokens=0, completion_tokens=0, cost=-0.01)


class TestEstimateTokens:
    """Test word-based token approximation."""

    def test_rounds_up(self):
        """Three words at 1.3 tokens each is 3.9, rounded up to 4."""
        assert estimate_tokens("one two three") == 4

    def test_single_word(self):
        """A single word is 1.3 tokens, rounded up to 2."""
        assert estimate_tokens("hello") == 2

    def test_exact_multiple(self):
        """Ten words is exactly 13 tokens."""
        assert estimate_tokens(" ".join(["word"] * 10)) == 13

    def test_collapses_whitespace(self):
        """Runs of whitespace and newlines count as a single separator."""
        assert estimate_tokens("  one \n\n two\tthree  ") == estimate_tokens("one two three")

    def test_blank_text(self):
        """Blank text has no tokens."""
        assert estimate_tokens("") == 0
        assert estimate_tokens("   \n") == 0

    def test_deterministic(self):
        """Same text always gives the same estimate."""
        text = "How do transformers handle long context windows?"
        assert estimate_tokens(text) == estimate_tokens(text)


class TestPricingTable:
    """Test pricing table functionality."""

    def test_get_supported_model(self):
        """Verify pricing retrieval for supported models."""
        pricing = PRICING_TABLE.get_pricing("gpt-4")
        assert pricing.prompt_rate == Decimal("0.00003")
        assert pricing.completion_rate == Decimal("0.00006")

    def test_unknown_model_uses_cheapest_tier(self):
        """Verify unknown models fall back to the cheapest known tier."""
        fallback = PRICING_TABLE.get_pricing("unknown-model")
        assert fallback == PRICING_TABLE.get_pricing("gpt-3.5-turbo")
        cheapest = min(PRICING_TABLE.prices.values(), key=lambda p: p.prompt_rate + p.completion_rate)
        assert fallback == cheapest

    def test_is_known(self):
        """Verify known-model lookup."""
        assert PRICING_TABLE.is_known("gpt-4o")
        assert not PRICING_TABLE.is_known("unknown-model")


class TestCostEstimation:
    """Test cost estimation accuracy."""

    def test_exact_cost_gpt4o(self):
        """Verify exact cost calculation for GPT-4o."""
        # Prompt: 1000 * 0.00001 = 0.01
        # Completion: 500 * 0.00003 = 0.015
        assert estimate_cost("gpt-4o", 1000, 500) == 0.025

    def test_exact_cost_gpt4(self):
        """Verify exact cost calculation for GPT-4."""
        # Prompt: 100 * 0.00003 = 0.003
        # Completion: 50 * 0.00006 = 0.003
        assert estimate_cost("gpt-4", 100, 50) == 0.006

    def test_unknown_model_cost(self):
        """Verify unknown models are billed at gpt-3.5-turbo rates."""
        # Prompt: 1000 * 0.000001 = 0.001
        # Completion: 1000 * 0.000002 = 0.002
        assert estimate_cost("mystery-model", 1000, 1000) == 0.003
        assert estimate_cost("mystery-model", 1000, 1000) == estimate_cost("gpt-3.5-turbo", 1000, 1000)

    def test_small_costs_not_rounded(self):
        """Verify fractions of a cent are kept."""
        assert estimate_cost("gpt-3.5-turbo", 1, 1) == 0.000003

    def test_zero_tokens_cost(self):
        """Verify cost calculation with zero tokens."""
        assert estimate_cost("gpt-4", 0, 0) == 0.0

    @pytest.mark.parametrize("model", ["gpt-4o", "gpt-4", "gpt-3.5-turbo", "unknown-model"])
    @pytest.mark.parametrize("prompt_tokens,completion_tokens", [(0, 0), (3, 2), (137, 911), (12345, 6789)])
    def test_cost_is_linear(self, model, prompt_tokens, completion_tokens):
        """Doubling both token counts doubles the cost exactly."""
        single = estimate_cost(model, prompt_tokens, completion_tokens)
        double = estimate_cost(model, 2 * prompt_tokens, 2 * completion_tokens)
        assert double == 2 * single
        assert single >= 0

    def test_negative_tokens_rejected(self):
        """Verify negative token counts are rejected."""
        with pytest.raises(ValueError, match="token counts"):
            estimate_cost("gpt-4", -1, 0)
