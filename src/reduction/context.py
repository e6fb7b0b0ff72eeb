"""Question-answering context: raw sections, or a condensed brief for long meetings."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from src.errors import BudgetExceededError
from src.generation.completions import build_messages, generate
from src.generation.deps import GenerationDeps
from src.ingestion.chunking import generate_chunks
from src.ingestion.models import TranscriptTurn
from src.reduction.condense import condense_summaries
from src.reduction.summaries import summarize_chunks

logger = logging.getLogger(__name__)

NO_CONTEXT = "No transcript or notes were provided."

CONSOLIDATE_SYSTEM_PROMPT = (
    "You compress meeting context into concise briefs while preserving every critical "
    "decision, action, and nuance."
)


def _notes_sections(personal_notes: str, enhanced_notes: str) -> list[str]:
    sections: list[str] = []
    if personal_notes.strip():
        sections.append(f"Personal Notes:\n{personal_notes.strip()}")
    if enhanced_notes.strip():
        sections.append(f"Enhanced Notes:\n{enhanced_notes.strip()}")
    return sections


def build_chat_context(transcript: str, personal_notes: str, enhanced_notes: str) -> str:
    """Join the non-empty transcript and note sections under labelled headers."""
    sections: list[str] = []
    if transcript.strip():
        sections.append(f"Meeting Transcript:\n{transcript.strip()}")
    sections.extend(_notes_sections(personal_notes, enhanced_notes))
    return "\n\n".join(sections) if sections else NO_CONTEXT


async def build_chunked_chat_context(
    deps: GenerationDeps,
    transcript: str,
    personal_notes: str,
    enhanced_notes: str,
    turns: Sequence[TranscriptTurn] | None = None,
    speaker_legend: str | None = None,
) -> str:
    """Reduce the transcript to a condensed context for question answering.

    Chunks and summarizes the transcript, condenses the summaries, then
    appends the notes. If the whole context is still over budget, one
    consolidation call folds everything into a single brief.

    Raises:
        BudgetExceededError: If even the consolidated brief exceeds the budget.
    """
    trimmed = transcript.strip()
    if not trimmed:
        return build_chat_context(trimmed, personal_notes, enhanced_notes)

    budget = deps.config.budget
    chunks = generate_chunks(trimmed, turns, budget.max_chunk_tokens, deps.estimate)
    if not chunks:
        return build_chat_context(trimmed, personal_notes, enhanced_notes)

    summaries = await summarize_chunks(deps, chunks, speaker_legend)
    condensed = await condense_summaries(deps, "", "{transcript}", summaries, "", speaker_legend)

    sections = [f"Condensed Transcript:\n{condensed}"]
    sections.extend(_notes_sections(personal_notes, enhanced_notes))
    context = "\n\n".join(sections)
    if deps.estimate(context) <= budget.max_prompt_tokens:
        return context

    logger.info("Chat context still over budget; consolidating into a single brief")
    consolidated = await generate(
        deps,
        build_messages(
            CONSOLIDATE_SYSTEM_PROMPT,
            "Condense the following meeting materials into a concise but information-dense "
            "brief suitable for answering questions later. Preserve all critical facts, "
            "decisions, action items (with owners/dates), blockers, and context."
            f"\n\n{context}",
        ),
        max(1, min(1000, budget.max_prompt_tokens // 2)),
        purpose="chat context consolidation",
    )
    context = f"Unified Meeting Brief:\n{consolidated.text or condensed}"
    if deps.estimate(context) > budget.max_prompt_tokens:
        raise BudgetExceededError("Unable to reduce chat context within model context window")
    return context
