"""
Token counting and usage tracking.

Approximates token counts from raw text and carries usage summaries
reported by the generation endpoint.
"""

import math
from dataclasses import dataclass
from typing import Optional

# Empirical words-to-tokens ratio for English-like text
TOKENS_PER_WORD = 1.3


@dataclass(frozen=True)
class UsageSummary:
    """Token and cost accounting for a single generation request.

    total_tokens is always derived, so it can never disagree with the
    prompt and completion counts.
    """
    prompt_tokens: int
    completion_tokens: int
    cost: Optional[float] = None

    def __post_init__(self):
        """Validate token counts and cost are non-negative."""
        if self.prompt_tokens < 0:
            raise ValueError("prompt_tokens must be >= 0")
        if self.completion_tokens < 0:
            raise ValueError("completion_tokens must be >= 0")
        if self.cost is not None and self.cost < 0:
            raise ValueError("cost must be >= 0")

    @property
    def total_tokens(self) -> int:
        """Total tokens used (prompt + completion)."""
        return self.prompt_tokens + self.completion_tokens


def estimate_tokens(text: str) -> int:
    """Approximate the token count of a piece of text.

    Args:
        text: Raw text to measure

    Returns:
        Word count multiplied by TOKENS_PER_WORD, rounded up. Blank text is 0.
    """
    words = text.split()
    if not words:
        return 0
    return math.ceil(len(words) * TOKENS_PER_WORD)
