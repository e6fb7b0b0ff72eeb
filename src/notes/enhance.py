"""Enhanced notes: render a template over the transcript, chunking when it is too long."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from src.errors import InputMissingError, operation_failure
from src.generation.completions import create_completion
from src.generation.deps import GenerationDeps
from src.ingestion.chunking import generate_chunks
from src.ingestion.models import TranscriptTurn
from src.notes.dynamic_note import generate_dynamic_note
from src.reduction.condense import condense_summaries
from src.reduction.summaries import summarize_chunks
from src.templates.built_in import DYNAMIC_NOTE_TEMPLATE_ID, PromptTemplate, get_template
from src.templates.processor import render_template

logger = logging.getLogger(__name__)

FAILURE_PREFIX = "Failed to enhance notes"
ENHANCE_MAX_TOKENS = 5000


async def enhance_with_chunking(
    deps: GenerationDeps,
    template: PromptTemplate,
    transcript: str,
    personal_notes: str,
    turns: Sequence[TranscriptTurn] | None = None,
    speaker_legend: str | None = None,
) -> str:
    """Chunk -> summarize -> condense, then one completion over the condensed prompt."""
    chunks = generate_chunks(transcript, turns, deps.config.budget.max_chunk_tokens, deps.estimate)
    if not chunks:
        raise InputMissingError("Transcript is empty - cannot generate enhanced notes.")

    logger.info("Enhancing via chunked workflow (%d chunks)", len(chunks))
    summaries = await summarize_chunks(deps, chunks, speaker_legend)
    prompt = await condense_summaries(
        deps,
        template.system_prompt,
        template.user_prompt,
        summaries,
        personal_notes,
        speaker_legend,
    )
    return await create_completion(
        deps, template.system_prompt, prompt, ENHANCE_MAX_TOKENS, purpose="enhanced notes"
    )


async def enhance_notes(
    deps: GenerationDeps,
    transcript: str,
    personal_notes: str = "",
    template: PromptTemplate | None = None,
    turns: Sequence[TranscriptTurn] | None = None,
    speaker_legend: str | None = None,
) -> str:
    """Produce enhanced meeting notes from *transcript* and *personal_notes*.

    The direct path is tried when the provider tolerates large contexts or
    the rendered prompt fits ``max_prompt_tokens``. A context-overflow error
    on that path falls back to the chunked workflow; any other error is
    fatal. Over-budget prompts go straight to the chunked workflow.

    Raises:
        InputMissingError: If neither transcript nor notes were supplied.
        BudgetExceededError: If the condensed transcript cannot fit the budget.
        OperationError: Any other failure, prefixed ``"Failed to enhance notes"``.
    """
    template = template or get_template()
    if template.id == DYNAMIC_NOTE_TEMPLATE_ID:
        return await generate_dynamic_note(deps, transcript, personal_notes, turns, speaker_legend)

    if not transcript.strip() and not personal_notes.strip():
        raise InputMissingError(f"{FAILURE_PREFIX}: No transcript or personal notes were provided.")

    prompt = render_template(template.user_prompt, transcript, personal_notes)
    estimated = deps.estimate(f"{template.system_prompt}\n{prompt}")
    budget = deps.config.budget

    if deps.config.capabilities.tolerates_large_context or estimated <= budget.max_prompt_tokens:
        try:
            return await create_completion(
                deps, template.system_prompt, prompt, ENHANCE_MAX_TOKENS, purpose="enhanced notes"
            )
        except Exception as error:
            if not deps.is_overflow(error):
                raise operation_failure(FAILURE_PREFIX, error) from error
            logger.warning("Direct enhancement exceeded the context window; chunking: %s", error)
    else:
        logger.info(
            "Prompt estimate %d exceeds budget of %d; chunking",
            estimated,
            budget.max_prompt_tokens,
        )

    try:
        return await enhance_with_chunking(
            deps, template, transcript, personal_notes, turns, speaker_legend
        )
    except Exception as error:
        logger.exception("Error enhancing long transcript")
        raise operation_failure(FAILURE_PREFIX, error) from error
