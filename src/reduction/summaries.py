"""Per-chunk summarization with continuity carried from one chunk to the next."""

from __future__ import annotations

import logging

from src.generation.completions import build_messages, generate
from src.generation.deps import GenerationDeps
from src.ingestion.models import TranscriptChunk

logger = logging.getLogger(__name__)

# Characters of raw chunk text kept when the model returns nothing.
RAW_FALLBACK_CHARS = 4000

SUMMARY_SYSTEM_PROMPT = (
    "You condense meeting transcripts into precise, information-dense summaries "
    "that retain all critical facts."
)


def build_chunk_prompt(
    chunk: TranscriptChunk,
    index: int,
    total: int,
    previous_summary: str | None = None,
    speaker_legend: str | None = None,
) -> str:
    """Render the summarization prompt for chunk *index* (1-based) of *total*."""
    speaker_list = ", ".join(chunk.speakers) if chunk.speakers else "Speakers not identified"
    previous_context = (
        "\nPrevious segment summary (for continuity, do not repeat unless the topic "
        f"continues):\n{previous_summary}\n"
        if previous_summary
        else ""
    )
    previous_turn = (
        "\nPrevious speaker turn (context only, do NOT summarize or attribute new "
        f"actions to this turn):\n{chunk.previous_turn}\n"
        if chunk.previous_turn
        else ""
    )
    legend = speaker_legend.strip() if speaker_legend else ""
    speaker_context = f"\nSpeaker labeling:\n{legend}\n" if legend else ""

    return f"""You are assisting with meeting notes that exceed the model context window. \
Summarize transcript segment {index} of {total}. Preserve key decisions, action items \
(with owners and dates), discussion points, and important context. Keep the output \
under 350 words.

Requirements:
- Return markdown bullets only (no standalone paragraphs).
- Use bold lead-ins for primary bullets and nested sub-bullets for supporting details.
- Attribute insights to speakers using their names where available.
- Tag items with [Decision], [Action], or [Blocker] where appropriate.
- Build on the prior segment summary to maintain continuity without repeating resolved points.

Segment metadata:
- Speakers: {speaker_list}
- Transcript turns: {chunk.start_turn + 1} to {chunk.end_turn + 1}{previous_context}
{speaker_context}{previous_turn}

Transcript segment {index}/{total}:
{chunk.text}"""


async def summarize_chunk(
    deps: GenerationDeps,
    chunk: TranscriptChunk,
    index: int,
    total: int,
    previous_summary: str | None = None,
    speaker_legend: str | None = None,
) -> str:
    """Summarize one chunk into markdown bullets.

    Falls back to the first 4000 characters of the chunk text when the model
    returns no content.
    """
    completion = await generate(
        deps,
        build_messages(
            SUMMARY_SYSTEM_PROMPT,
            build_chunk_prompt(chunk, index, total, previous_summary, speaker_legend),
        ),
        deps.config.budget.chunk_summary_max_tokens,
        purpose=f"chunk summary {index}/{total}",
    )
    if completion.text:
        return completion.text

    logger.warning(
        "Empty chunk summary content (finish_reason=%s, response_id=%s); "
        "falling back to raw transcript segment",
        completion.stop_reason,
        completion.response_id,
    )
    return chunk.text[:RAW_FALLBACK_CHARS]


async def summarize_chunks(
    deps: GenerationDeps,
    chunks: list[TranscriptChunk],
    speaker_legend: str | None = None,
) -> list[str]:
    """Summarize *chunks* strictly in order.

    Each prompt embeds the previous chunk's summary, so chunk ``k`` is not
    requested until chunk ``k - 1`` has been summarized.
    """
    summaries: list[str] = []
    previous: str | None = None
    total = len(chunks)

    for position, chunk in enumerate(chunks, start=1):
        logger.info("Summarizing chunk %d/%d", position, total)
        summary = await summarize_chunk(deps, chunk, position, total, previous, speaker_legend)
        summary = summary.strip() or chunk.text[:RAW_FALLBACK_CHARS]
        summaries.append(summary)
        previous = summary

    return summaries
