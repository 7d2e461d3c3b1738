"""
Pricing calculations and rate management.

Handles cost estimates for the models offered by the playground.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Dict


@dataclass(frozen=True)
class ModelPricing:
    """Per-token pricing for a specific model."""
    prompt_rate: Decimal  # Cost per prompt token
    completion_rate: Decimal  # Cost per completion token


@dataclass(frozen=True)
class PricingTable:
    """Fixed pricing table with a fallback tier for unknown models."""
    prices: Dict[str, ModelPricing]
    fallback_model: str

    def __post_init__(self):
        if self.fallback_model not in self.prices:
            raise ValueError(f"Fallback model not priced: {self.fallback_model}")

    def is_known(self, model: str) -> bool:
        """Whether the model has its own entry in the table."""
        return model in self.prices

    def get_pricing(self, model: str) -> ModelPricing:
        """Get pricing for a specific model.

        Args:
            model: Model identifier

        Returns:
            ModelPricing for the model, or the fallback tier if unknown
        """
        return self.prices.get(model, self.prices[self.fallback_model])


# Fixed pricing table - unknown models are billed at the cheapest tier
PRICING_TABLE = PricingTable(
    prices={
        "gpt-4o": ModelPricing(
            prompt_rate=Decimal("0.00001"),
            completion_rate=Decimal("0.00003")
        ),
        "gpt-4": ModelPricing(
            prompt_rate=Decimal("0.00003"),
            completion_rate=Decimal("0.00006")
        ),
        "gpt-3.5-turbo": ModelPricing(
            prompt_rate=Decimal("0.000001"),
            completion_rate=Decimal("0.000002")
        ),
    },
    fallback_model="gpt-3.5-turbo",
)


def estimate_cost(model: str, prompt_tokens: int, completion_tokens: int) -> float:
    """Estimate the dollar cost of a request.

    Cost is linear in both token counts and is never rounded, so doubling
    the tokens doubles the cost exactly.

    Args:
        model: Model identifier
        prompt_tokens: Tokens sent to the model
        completion_tokens: Tokens generated by the model

    Returns:
        Estimated cost in dollars

    Raises:
        ValueError: If a token count is negative
    """
    if prompt_tokens < 0 or completion_tokens < 0:
        raise ValueError("token counts must be >= 0")

    pricing = PRICING_TABLE.get_pricing(model)

    prompt_cost = Decimal(prompt_tokens) * pricing.prompt_rate
    completion_cost = Decimal(completion_tokens) * pricing.completion_rate

    return float(prompt_cost + completion_cost)
