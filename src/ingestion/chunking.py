"""Budget-driven transcript chunking.

Chunk boundaries are decided purely by estimated token cost: units (turns or
words) are packed into the running chunk while
``running + estimate(unit) <= max_tokens``. A chunk is never closed while
empty, so a single unit larger than the budget becomes a chunk of its own.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence

from src.ingestion.models import TranscriptChunk, TranscriptTurn
from src.ingestion.speakers import extract_speakers_from_text, find_previous_turn, format_turn

logger = logging.getLogger(__name__)

TokenEstimator = Callable[[str], int]


def chunk_words(transcript: str, max_tokens: int, estimate: TokenEstimator) -> list[str]:
    """Split a flat transcript into word runs within *max_tokens*.

    Args:
        transcript: Flat transcript text.
        max_tokens: Estimated-token budget per chunk.
        estimate: Token estimator applied to each ``"word "``.

    Returns:
        Chunk texts (words joined by single spaces). Falls back to
        ``[transcript]`` when the text has no words.
    """
    chunks: list[str] = []
    current: list[str] = []
    current_tokens = 0

    for word in transcript.split():
        estimated = estimate(f"{word} ")
        if current and current_tokens + estimated > max_tokens:
            chunks.append(" ".join(current))
            current = [word]
            current_tokens = estimated
        else:
            current.append(word)
            current_tokens += estimated

    if current:
        chunks.append(" ".join(current))

    return chunks or [transcript]


def chunk_turns(
    turns: Sequence[TranscriptTurn],
    fallback_transcript: str,
    max_tokens: int,
    estimate: TokenEstimator,
) -> list[TranscriptChunk]:
    """Pack consecutive speaker turns into budget-bounded chunks.

    Turns that render to empty text are skipped. If no turn yields text but
    *fallback_transcript* is non-empty, a single chunk spanning the whole
    transcript is returned.

    Args:
        turns: Relabeled transcript turns.
        fallback_transcript: Flat transcript used when turns are all empty.
        max_tokens: Estimated-token budget per chunk.
        estimate: Token estimator applied to each ``"[speaker]: text\\n\\n"``, so the
            separator joining turns is part of every turn's cost.

    Returns:
        Ordered, gap-free list of :class:`TranscriptChunk`.
    """
    if not turns:
        return []

    chunks: list[TranscriptChunk] = []
    segments: list[str] = []
    speakers: dict[str, None] = {}
    current_tokens = 0
    start_index = -1
    last_index = -1

    def close() -> None:
        chunks.append(
            TranscriptChunk(
                text="\n\n".join(segments),
                speakers=list(speakers),
                start_turn=start_index,
                end_turn=last_index,
                previous_turn=find_previous_turn(turns, start_index - 1),
            )
        )

    for index, turn in enumerate(turns):
        formatted = format_turn(turn)
        if not formatted:
            continue

        estimated = estimate(f"{formatted}\n\n")
        if segments and current_tokens + estimated > max_tokens:
            close()
            segments = []
            speakers = {}
            current_tokens = 0

        if not segments:
            start_index = index
        segments.append(formatted)
        current_tokens += estimated
        last_index = index

        speaker = (turn.speaker or "").strip()
        if speaker:
            speakers.setdefault(speaker, None)

    if segments:
        close()

    if not chunks and fallback_transcript.strip():
        return [
            TranscriptChunk(
                text=fallback_transcript,
                speakers=extract_speakers_from_text(fallback_transcript),
                start_turn=0,
                end_turn=len(turns) - 1,
                previous_turn=None,
            )
        ]

    return chunks


def generate_chunks(
    transcript: str,
    turns: Sequence[TranscriptTurn] | None,
    max_tokens: int,
    estimate: TokenEstimator,
) -> list[TranscriptChunk]:
    """Chunk a transcript, preferring structured turns over word splitting.

    Returns:
        Zero chunks only when the transcript is empty and no turn has text.
    """
    trimmed = (transcript or "").strip()

    if turns:
        turn_chunks = chunk_turns(turns, trimmed, max_tokens, estimate)
        if turn_chunks:
            logger.debug("Chunked %d turns into %d chunks", len(turns), len(turn_chunks))
            return turn_chunks

    if not trimmed:
        return []

    texts = chunk_words(trimmed, max_tokens, estimate)
    chunks: list[TranscriptChunk] = []
    for index, text in enumerate(texts):
        previous_turn: str | None = None
        if index > 0:
            previous_turn = texts[index - 1].split("\n")[-1].strip() or None
        chunks.append(
            TranscriptChunk(
                text=text,
                speakers=extract_speakers_from_text(text),
                start_turn=index,
                end_turn=index,
                previous_turn=previous_turn,
            )
        )
    logger.debug("Chunked %d words into %d chunks", len(trimmed.split()), len(chunks))
    return chunks
