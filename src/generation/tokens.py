"""Token estimation used for budget decisions."""

from __future__ import annotations

import math

# Average characters per token for English prose across common tokenizers.
CHARS_PER_TOKEN = 4


def estimate_tokens(text: str) -> int:
    """Rough token estimate: one token per four characters, rounded up.

    Dependency-free and monotonic, so concatenation roughly sums estimates.
    """
    if not text:
        return 0
    return math.ceil(len(text) / CHARS_PER_TOKEN)
