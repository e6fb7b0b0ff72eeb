"""Transcript parsers for VTT, plain text, and JSON formats."""

from __future__ import annotations

import json
import re
from collections.abc import Callable

from src.ingestion.models import TranscriptTurn

# A speaker prefix must end with a colon inside this many characters.
_MAX_SPEAKER_PREFIX = 50


def _parse_vtt_timestamp(ts: str) -> float:
    """Convert a VTT timestamp (HH:MM:SS.mmm) to seconds."""
    parts = ts.strip().split(":")
    if len(parts) == 3:
        hours, minutes, seconds = parts
    elif len(parts) == 2:
        hours = "0"
        minutes, seconds = parts
    else:
        return 0.0
    return int(hours) * 3600 + int(minutes) * 60 + float(seconds)


def parse_vtt(content: str) -> list[TranscriptTurn]:
    """Parse a WebVTT file into transcript turns.

    Handles timestamps like ``00:01:23.456 --> 00:01:30.789`` and speaker labels
    in two formats:

    - Standard colon-style: ``Speaker 1: Hello``
    - Microsoft Teams inline voice tags: ``<v SpeakerName>Hello</v>``

    Voice tags take precedence over colon-style labels when both are present.
    """
    turns: list[TranscriptTurn] = []

    timestamp_re = re.compile(
        r"(\d{1,2}:\d{2}:\d{2}[.,]\d{3})\s*-->\s*(\d{1,2}:\d{2}:\d{2}[.,]\d{3})"
    )
    speaker_re = re.compile(r"^(.+?):\s+(.+)$")
    # The closing </v> tag is optional per the WebVTT spec.
    voice_re = re.compile(r"^<v ([^>]+)>(.*?)(?:</v>)?$", re.DOTALL)

    lines = content.strip().splitlines()
    i = 0
    while i < len(lines):
        line = lines[i].strip()
        match = timestamp_re.search(line)
        if match:
            start = _parse_vtt_timestamp(match.group(1).replace(",", "."))
            end = _parse_vtt_timestamp(match.group(2).replace(",", "."))

            # Collect text lines until blank line or next timestamp / end
            text_lines: list[str] = []
            i += 1
            while i < len(lines) and lines[i].strip() and not timestamp_re.search(lines[i]):
                text_lines.append(lines[i].strip())
                i += 1

            full_text = " ".join(text_lines)
            speaker: str | None = None

            voice_match = voice_re.match(full_text)
            if voice_match:
                speaker = voice_match.group(1).strip()
                full_text = voice_match.group(2).strip()
            else:
                speaker_match = speaker_re.match(full_text)
                if speaker_match:
                    speaker = speaker_match.group(1)
                    full_text = speaker_match.group(2)

            if full_text:
                turns.append(
                    TranscriptTurn(
                        speaker=speaker,
                        text=full_text,
                        start_time=start,
                        end_time=end,
                    )
                )
        else:
            i += 1

    return turns


def parse_plain_text(content: str | None) -> list[TranscriptTurn]:
    """Reconstruct turns from a flat transcript.

    A line is attributed when it starts with a single-token speaker label
    followed by a colon (``Alice: hi``, ``[S1]: ok``) within the first 50
    characters and has text after the colon. Every other non-empty line
    becomes an unattributed turn.
    """
    if not content or not content.strip():
        return []

    turns: list[TranscriptTurn] = []
    for line in re.split(r"\n+", content.strip()):
        cleaned = line.strip()
        if not cleaned:
            continue

        colon = cleaned.find(":")
        if 0 < colon < _MAX_SPEAKER_PREFIX:
            speaker = cleaned[:colon].strip()
            text = cleaned[colon + 1 :].strip()
            if speaker and " " not in speaker and text:
                turns.append(TranscriptTurn(speaker=speaker, text=text))
                continue

        turns.append(TranscriptTurn(speaker=None, text=cleaned))

    return turns


def parse_json(content: str) -> list[TranscriptTurn]:
    """Parse a JSON transcript.

    Supported formats:

    AssemblyAI (times in milliseconds)::

        {"utterances": [{"speaker": "A", "text": "...", "start": ms, "end": ms}]}

    MeetingBank canonical (speaker_id field, times in seconds)::

        {"transcription": [{"speaker_id": "SPEAKER_0", "text": "...", "start_time": s}]}

    Segments or turns (times in seconds)::

        {"segments": [{"speaker": "...", "text": "...", "start_time": s, "end_time": s}]}
        {"turns": [{"speaker": "...", "text": "..."}]}
    """
    data = json.loads(content)
    if not isinstance(data, dict):
        msg = f"Unrecognized JSON transcript format: expected an object, got {type(data).__name__}"
        raise ValueError(msg)
    turns: list[TranscriptTurn] = []

    if "utterances" in data:
        for utt in data["utterances"]:
            turns.append(
                TranscriptTurn(
                    speaker=utt.get("speaker"),
                    text=utt["text"],
                    start_time=utt.get("start", 0) / 1000.0,
                    end_time=utt.get("end", 0) / 1000.0,
                )
            )
    elif "transcription" in data:
        for item in data["transcription"]:
            turns.append(
                TranscriptTurn(
                    speaker=item.get("speaker_id"),
                    text=item["text"],
                    start_time=item.get("start_time"),
                    end_time=item.get("end_time"),
                )
            )
    elif "segments" in data or "turns" in data:
        for seg in data.get("segments") or data.get("turns") or []:
            turns.append(
                TranscriptTurn(
                    speaker=seg.get("speaker"),
                    text=seg["text"],
                    start_time=seg.get("start_time"),
                    end_time=seg.get("end_time"),
                )
            )
    else:
        msg = f"Unrecognized JSON transcript format. Keys: {list(data.keys())}"
        raise ValueError(msg)

    return turns


def parse_transcript(content: str, format: str) -> list[TranscriptTurn]:
    """Dispatch to the correct parser based on *format*.

    Args:
        content: Raw transcript text.
        format: One of ``"vtt"``, ``"text"`` / ``"plain_text"`` / ``"txt"``,
                or ``"json"``.

    Returns:
        Parsed transcript turns.

    Raises:
        ValueError: If *format* is not recognized.
    """
    dispatch: dict[str, Callable[[str], list[TranscriptTurn]]] = {
        "vtt": parse_vtt,
        "text": parse_plain_text,
        "plain_text": parse_plain_text,
        "txt": parse_plain_text,
        "json": parse_json,
    }

    parser = dispatch.get(format)
    if parser is None:
        msg = f"Unknown transcript format: {format!r}. Supported: {list(dispatch.keys())}"
        raise ValueError(msg)

    return parser(content)
