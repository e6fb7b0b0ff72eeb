"""Single generation calls with one bounded retry on truncated, empty output."""

from __future__ import annotations

import logging

from src.generation.client import ChatOptions, Completion, Message, StopReason
from src.generation.deps import GenerationDeps

logger = logging.getLogger(__name__)

# Hard ceiling for the enlarged retry budget.
MAX_RETRY_TOKENS = 6000


def retry_token_ceiling(max_tokens: int) -> int:
    """Enlarged completion budget for the single retry after a truncated empty result."""
    return min(max(int(max_tokens * 1.5), max_tokens + 200), MAX_RETRY_TOKENS)


def build_messages(system_prompt: str, user_prompt: str) -> list[Message]:
    return [
        {"role": "system", "content": system_prompt},
        {"role": "user", "content": user_prompt},
    ]


def no_content_placeholder(completion: Completion) -> str:
    return (
        f"Model returned no content (finish_reason: {completion.stop_reason}, "
        f"response_id: {completion.response_id})"
    )


async def generate(
    deps: GenerationDeps,
    messages: list[Message],
    max_tokens: int,
    options: ChatOptions | None = None,
    purpose: str = "completion",
) -> Completion:
    """Issue one generation call, retrying once if it came back empty and truncated.

    Returns:
        The first non-empty completion, or the last (empty) attempt. Errors
        raised by the client propagate unchanged.
    """
    first = await deps.client.complete(deps.model, messages, max_tokens, options)
    if first.text:
        return first

    if first.stop_reason is not StopReason.LENGTH:
        logger.warning(
            "Empty %s (finish_reason=%s, response_id=%s)",
            purpose,
            first.stop_reason,
            first.response_id,
        )
        return first

    retry_tokens = retry_token_ceiling(max_tokens)
    logger.warning(
        "Retrying %s due to length finish_reason; increasing max tokens from %d to %d",
        purpose,
        max_tokens,
        retry_tokens,
    )
    retry = await deps.client.complete(deps.model, messages, retry_tokens, options)
    if not retry.text:
        logger.warning(
            "Second %s attempt returned no content (finish_reason=%s, response_id=%s)",
            purpose,
            retry.stop_reason,
            retry.response_id,
        )
    return retry


async def create_completion(
    deps: GenerationDeps,
    system_prompt: str,
    user_prompt: str,
    max_tokens: int,
    purpose: str = "completion",
) -> str:
    """Generate text for a system/user prompt pair.

    An exhausted retry degrades to a diagnostic placeholder string instead of
    raising.
    """
    completion = await generate(
        deps,
        build_messages(system_prompt, user_prompt),
        max_tokens,
        purpose=purpose,
    )
    return completion.text or no_content_placeholder(completion)
