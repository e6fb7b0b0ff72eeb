"""Answer questions about a meeting, condensing the context when it is too long."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from src.errors import operation_failure
from src.generation.completions import create_completion
from src.generation.deps import GenerationDeps
from src.ingestion.models import TranscriptTurn
from src.reduction.context import build_chat_context, build_chunked_chat_context

logger = logging.getLogger(__name__)

FAILURE_PREFIX = "Failed to get answer"

CHAT_SYSTEM_PROMPT = (
    "You are a helpful assistant that answers questions about meeting content. Base your "
    "answers on the provided transcript and notes. Be concise and accurate."
)


async def chat_with_transcript(
    deps: GenerationDeps,
    transcript: str,
    personal_notes: str,
    enhanced_notes: str,
    question: str,
    turns: Sequence[TranscriptTurn] | None = None,
    speaker_legend: str | None = None,
) -> str:
    """Answer *question* from the transcript and notes.

    Raises:
        BudgetExceededError: If the condensed context cannot fit the budget.
        OperationError: Any other failure, prefixed ``"Failed to get answer"``.
    """
    capabilities = deps.config.capabilities
    budget = deps.config.budget
    max_answer_tokens = capabilities.max_answer_tokens

    context = build_chat_context(transcript, personal_notes, enhanced_notes)
    user_prompt = f"{context}\n\nQuestion: {question}"
    estimated = deps.estimate(f"{CHAT_SYSTEM_PROMPT}\n{user_prompt}")

    if capabilities.tolerates_large_context or estimated <= budget.max_prompt_tokens:
        try:
            return await create_completion(
                deps, CHAT_SYSTEM_PROMPT, user_prompt, max_answer_tokens, purpose="chat answer"
            )
        except Exception as error:
            if not deps.is_overflow(error):
                raise operation_failure(FAILURE_PREFIX, error) from error
            logger.warning("Direct chat completion exceeded the context window; condensing")

    try:
        condensed = await build_chunked_chat_context(
            deps, transcript, personal_notes, enhanced_notes, turns, speaker_legend
        )
        return await create_completion(
            deps,
            CHAT_SYSTEM_PROMPT,
            f"{condensed}\n\nQuestion: {question}",
            max_answer_tokens,
            purpose="chat answer",
        )
    except Exception as error:
        logger.exception("Error answering from condensed context")
        raise operation_failure(FAILURE_PREFIX, error) from error
