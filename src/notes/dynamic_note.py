"""Dynamic notes: bullet notes organized around topic areas detected per meeting."""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence

from src.errors import InputMissingError, operation_failure
from src.generation.completions import build_messages, generate
from src.generation.deps import GenerationDeps
from src.ingestion.chunking import generate_chunks
from src.ingestion.models import TranscriptTurn
from src.notes.areas import (
    DynamicNoteArea,
    build_areas_narrative,
    default_dynamic_areas,
    identify_dynamic_areas,
)
from src.reduction.condense import condense_summaries
from src.reduction.summaries import summarize_chunks

logger = logging.getLogger(__name__)

FAILURE_PREFIX = "Failed to generate dynamic note"
DYNAMIC_NOTE_MAX_TOKENS = 900

DYNAMIC_NOTE_SYSTEM_PROMPT = (
    "You create dynamic meeting notes using only markdown bullet lists. Top-level bullets "
    "must start with bolded area labels, followed by concise summaries. Use nested "
    "sub-bullets for supporting detail. Do not use headings, numbered lists, or paragraphs."
)

_INSTRUCTIONS = """Instructions:
- Produce one top-level bullet per focus area in the order provided. Format as "- **Area Title**: brief headline".
- Under each top-level bullet, add 1-4 nested sub-bullets with supporting detail drawn from the transcript and notes. Use "  - " for sub bullets.
- Highlight critical names, decisions, dates, and owners in bold.
- Tag critical items with [Decision], [Action], or [Risk] when relevant.
- Do NOT include the words "Summary", section headers, or introductory prose.
- If an area lacks content, still include the bullet with a single sub-bullet stating "No notable updates discussed."
- Previous speaker turns supplied earlier were context only; do not quote or summarise them separately.
- Keep the tone factual and concise."""


def build_dynamic_note_prompt(
    condensed_transcript: str, areas: list[DynamicNoteArea], personal_notes: str
) -> str:
    areas_json = json.dumps([area.to_dict() for area in areas], indent=2, ensure_ascii=False)
    notes = personal_notes.strip() or "None provided."
    return (
        "You already analysed the meeting. Use the condensed transcript and recommended "
        "focus areas below to produce the final dynamic note.\n\n"
        f"Condensed transcript:\n{condensed_transcript}\n\n"
        f"Recommended focus areas (JSON):\n{areas_json}\n\n"
        f"Focus guidance in prose:\n{build_areas_narrative(areas)}\n\n"
        f"Personal notes to consider:\n{notes}\n\n"
        f"{_INSTRUCTIONS}"
    )


async def _classify(
    deps: GenerationDeps, condensed: str, personal_notes: str
) -> list[DynamicNoteArea]:
    try:
        return await identify_dynamic_areas(deps, condensed, personal_notes)
    except Exception:
        logger.warning("Failed to identify dynamic areas, using defaults", exc_info=True)
        return default_dynamic_areas()


async def generate_dynamic_note(
    deps: GenerationDeps,
    transcript: str,
    personal_notes: str = "",
    turns: Sequence[TranscriptTurn] | None = None,
    speaker_legend: str | None = None,
) -> str:
    """Chunk, summarize and condense the transcript, then write topic-organized notes.

    Raises:
        InputMissingError: If neither transcript nor notes were supplied, or
            the transcript yields no chunks. No generation call is made.
        BudgetExceededError: If the condensed transcript cannot fit the budget.
        OperationError: For any other failure, prefixed with
            ``"Failed to generate dynamic note"``.
    """
    trimmed_transcript = transcript.strip()
    trimmed_notes = personal_notes.strip()
    if not trimmed_transcript and not trimmed_notes:
        raise InputMissingError(f"{FAILURE_PREFIX}: No transcript or personal notes were provided.")

    budget = deps.config.budget
    chunks = generate_chunks(trimmed_transcript, turns, budget.max_chunk_tokens, deps.estimate)
    if not chunks:
        raise InputMissingError(
            f"{FAILURE_PREFIX}: Transcript is empty - cannot generate dynamic notes."
        )

    try:
        summaries = await summarize_chunks(deps, chunks, speaker_legend)
        condensed = await condense_summaries(
            deps, "", "{transcript}", summaries, trimmed_notes, speaker_legend
        )
        areas = await _classify(deps, condensed, trimmed_notes)
        logger.info("Writing dynamic note across %d areas", len(areas))

        completion = await generate(
            deps,
            build_messages(
                DYNAMIC_NOTE_SYSTEM_PROMPT,
                build_dynamic_note_prompt(condensed, areas, trimmed_notes),
            ),
            DYNAMIC_NOTE_MAX_TOKENS,
            purpose="dynamic note",
        )
    except Exception as error:
        logger.exception("Error generating dynamic note")
        raise operation_failure(FAILURE_PREFIX, error) from error

    if completion.text:
        return completion.text
    logger.warning(
        "Empty dynamic note content (finish_reason=%s, response_id=%s); "
        "returning condensed transcript fallback",
        completion.stop_reason,
        completion.response_id,
    )
    return condensed or "Model returned no content."
