"""Data models for transcript ingestion and chunking."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class TranscriptTurn:
    """One speaker turn; ``speaker`` is ``None`` when unattributed."""

    speaker: str | None
    text: str
    start_time: float | None = None
    end_time: float | None = None


@dataclass
class TranscriptChunk:
    """A budget-bounded contiguous slice of a transcript.

    ``start_turn``/``end_turn`` are 0-based inclusive turn indices (chunk
    positions for word-based chunks). ``previous_turn`` is context only and
    is not counted against the chunk budget.
    """

    text: str
    speakers: list[str] = field(default_factory=list)
    start_turn: int = 0
    end_turn: int = 0
    previous_turn: str | None = None


@dataclass(frozen=True)
class SpeakerProfile:
    """The enrolled primary user, as supplied by the caller."""

    name: str | None = None
    email: str | None = None


@dataclass(frozen=True)
class SpeakerLegend:
    """Canonical speaker mapping for one pipeline invocation."""

    main_label: str
    mapping: dict[str, str]
    text: str


@dataclass(frozen=True)
class PreparedTranscript:
    """A transcript ready to be embedded in prompts."""

    transcript: str
    transcript_with_legend: str
    turns: list[TranscriptTurn]
    legend: SpeakerLegend
