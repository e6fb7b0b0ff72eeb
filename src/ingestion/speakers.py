"""Speaker normalization: map raw diarization labels to a canonical legend."""

from __future__ import annotations

import re
from collections.abc import Sequence

from src.ingestion.models import (
    PreparedTranscript,
    SpeakerLegend,
    SpeakerProfile,
    TranscriptTurn,
)
from src.ingestion.parsers import parse_plain_text

DEFAULT_MAIN_LABEL = "You"

# Transcription services label the microphone owner "You" by default.
_YOU_ALIAS = "you"

_ANON_LABEL_RE = re.compile(r"^s\d+$", re.IGNORECASE)
_TEXT_SPEAKER_RE = re.compile(r"\[(.+?)\]:")


def format_turn(turn: TranscriptTurn | None) -> str | None:
    """Render a turn as ``[speaker]: text``, or bare text when unattributed.

    Returns ``None`` for turns with no text.
    """
    if turn is None:
        return None
    text = (turn.text or "").strip()
    if not text:
        return None
    speaker = (turn.speaker or "").strip()
    return f"[{speaker}]: {text}" if speaker else text


def extract_speakers_from_text(text: str) -> list[str]:
    """Return ``[Name]:`` speaker markers found in *text*, in first-appearance order."""
    speakers: dict[str, None] = {}
    for match in _TEXT_SPEAKER_RE.finditer(text or ""):
        name = match.group(1).strip()
        if name:
            speakers.setdefault(name, None)
    return list(speakers)


def find_previous_turn(turns: Sequence[TranscriptTurn], start_index: int) -> str | None:
    """Walk backwards from *start_index* to the nearest non-empty formatted turn."""
    for index in range(min(start_index, len(turns) - 1), -1, -1):
        formatted = format_turn(turns[index])
        if formatted:
            return formatted
    return None


def normalize_label(label: str | None) -> str | None:
    """Strip brackets, trim and case-fold a speaker label; ``None`` if empty."""
    if not label:
        return None
    cleaned = label.replace("[", "").replace("]", "").strip()
    return cleaned.lower() if cleaned else None


def _legend_text(
    main_label: str, has_other_speakers: bool, profile: SpeakerProfile | None
) -> str:
    details: list[str] = []
    if profile and profile.name and profile.name.strip():
        details.append(profile.name.strip())
    if profile and profile.email and profile.email.strip():
        details.append(f"email {profile.email.strip()}")
    detail_text = f"; ({', '.join(details)})" if details else ""

    lines = [
        "Speaker labeling:",
        f"- [{main_label}]: primary user (enrolled speaker profile if available{detail_text}).",
    ]
    if has_other_speakers:
        lines.append(
            "- Other speakers: [S1], [S2], [S3], ... assigned to each unique "
            "non-enrolled speaker in order of appearance."
        )
    else:
        lines.append(
            "- Other speakers: none detected in this transcript. If they appear, "
            "they are labeled S1, S2, S3 in order of appearance."
        )
    lines.append('- Transcript format: "[SpeakerLabel]: message text".')
    return "\n".join(lines)


def build_speaker_legend(
    turns: Sequence[TranscriptTurn], profile: SpeakerProfile | None = None
) -> SpeakerLegend:
    """Build the canonical speaker mapping for *turns*.

    The primary user (profile name, or the literal ``you``) maps to the
    profile name, defaulting to ``"You"``. Every other distinct label maps to
    ``S1, S2, ...`` by first appearance; labels already shaped like ``S<n>``
    are kept, upper-cased, and their numbers are skipped when assigning new
    labels.
    """
    main_label = (profile.name or "").strip() if profile else ""
    main_label = main_label or DEFAULT_MAIN_LABEL

    main_aliases = {_YOU_ALIAS}
    main_key = normalize_label(main_label)
    if main_key:
        main_aliases.add(main_key)

    reserved = {
        label
        for label in (normalize_label(turn.speaker) for turn in turns)
        if label and label not in main_aliases and _ANON_LABEL_RE.match(label)
    }

    mapping: dict[str, str] = {}
    next_index = 1
    has_other_speakers = False

    for turn in turns:
        normalized = normalize_label(turn.speaker)
        if not normalized:
            continue
        if normalized in main_aliases:
            mapping[normalized] = main_label
            continue
        if normalized not in mapping:
            if _ANON_LABEL_RE.match(normalized):
                mapping[normalized] = normalized.upper()
            else:
                while f"s{next_index}" in reserved:
                    next_index += 1
                mapping[normalized] = f"S{next_index}"
                next_index += 1
            has_other_speakers = True

    return SpeakerLegend(
        main_label=main_label,
        mapping=mapping,
        text=_legend_text(main_label, has_other_speakers, profile),
    )


def relabel_speaker(raw: str | None, legend: SpeakerLegend) -> str | None:
    """Map a raw label through *legend*; unmapped labels keep their trimmed form."""
    normalized = normalize_label(raw)
    if not normalized:
        return None
    if normalized in legend.mapping:
        return legend.mapping[normalized]
    if normalized in (_YOU_ALIAS, normalize_label(legend.main_label)):
        return legend.main_label
    return (raw or "").strip() or None


def normalize_speakers(
    turns: Sequence[TranscriptTurn], profile: SpeakerProfile | None = None
) -> tuple[list[TranscriptTurn], SpeakerLegend]:
    """Relabel every turn through the canonical legend.

    Returns:
        The relabeled turns and the legend they were mapped with.
    """
    legend = build_speaker_legend(turns, profile)
    relabeled = [
        TranscriptTurn(
            speaker=relabel_speaker(turn.speaker, legend),
            text=turn.text,
            start_time=turn.start_time,
            end_time=turn.end_time,
        )
        for turn in turns
    ]
    return relabeled, legend


def prepare_transcript(
    transcript: str,
    turns: Sequence[TranscriptTurn] | None = None,
    profile: SpeakerProfile | None = None,
) -> PreparedTranscript:
    """Normalize speakers and render the transcript for prompting.

    Structured *turns* are used when supplied; otherwise turns are
    reconstructed from the flat *transcript*. If no turn renders to text the
    supplied transcript is used as-is.
    """
    base_turns = list(turns) if turns else parse_plain_text(transcript)
    cleaned = [
        TranscriptTurn(
            speaker=(turn.speaker or "").strip() or None,
            text=(turn.text or "").strip(),
            start_time=turn.start_time,
            end_time=turn.end_time,
        )
        for turn in base_turns
    ]

    relabeled, legend = normalize_speakers(cleaned, profile)
    rendered = "\n\n".join(
        formatted for formatted in (format_turn(turn) for turn in relabeled) if formatted
    )
    content = rendered or (transcript or "").strip()
    with_legend = f"{legend.text}\n\n{content}" if legend.text else content

    return PreparedTranscript(
        transcript=content,
        transcript_with_legend=with_legend,
        turns=relabeled,
        legend=legend,
    )
