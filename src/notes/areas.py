"""Topic-area classification for dynamic notes."""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any

from src.generation.completions import build_messages, generate
from src.generation.deps import GenerationDeps

logger = logging.getLogger(__name__)

MAX_AREAS = 6
CLASSIFY_MAX_TOKENS = 400
# Characters of condensed transcript shown to the classifier.
CLASSIFY_TRANSCRIPT_CHARS = 6000

CLASSIFY_SYSTEM_PROMPT = (
    "You analyse meeting transcripts to propose the most useful note categories. "
    'Reply with JSON only using the structure {"areas":[{"title":"","focus":["",""],'
    '"rationale":""}]} and keep between 3 and 6 areas.'
)

_FENCE_OPEN_RE = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
_FENCE_CLOSE_RE = re.compile(r"\s*```$")


@dataclass(frozen=True)
class DynamicNoteArea:
    """A topic area the dynamic note is organized around."""

    title: str
    focus: list[str] = field(default_factory=list)
    rationale: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"title": self.title, "focus": list(self.focus)}
        if self.rationale:
            data["rationale"] = self.rationale
        return data


def default_dynamic_areas() -> list[DynamicNoteArea]:
    return [
        DynamicNoteArea(
            title="Highlights & Outcomes",
            focus=[
                "Major announcements or results",
                "Key metrics or achievements that define success",
            ],
        ),
        DynamicNoteArea(
            title="Decisions & Rationale",
            focus=[
                "Important choices made, including who decided",
                "Short rationale or supporting evidence",
            ],
        ),
        DynamicNoteArea(
            title="Next Actions & Owners",
            focus=[
                "Follow-up tasks with owners and timelines",
                "Dependencies or blockers tied to each action",
            ],
        ),
        DynamicNoteArea(
            title="Risks & Open Questions",
            focus=[
                "Outstanding concerns that need monitoring",
                "Questions that remain unresolved",
            ],
        ),
    ]


def _normalize_area(raw: Any) -> DynamicNoteArea | None:
    if not isinstance(raw, dict):
        return None
    title = raw.get("title")
    if not isinstance(title, str) or not title.strip():
        return None

    focus_source = raw.get("focus")
    if isinstance(focus_source, list):
        focus = [item.strip() for item in focus_source if isinstance(item, str) and item.strip()]
    elif isinstance(focus_source, str) and focus_source.strip():
        focus = [focus_source.strip()]
    else:
        focus = []

    rationale = raw.get("rationale")
    rationale = rationale.strip() if isinstance(rationale, str) and rationale.strip() else None
    return DynamicNoteArea(title=title.strip(), focus=focus, rationale=rationale)


def parse_dynamic_areas(raw: str) -> list[DynamicNoteArea]:
    """Parse classifier output into areas.

    Accepts ``{"areas": [...]}`` or a bare list, optionally wrapped in a
    markdown code fence. Entries without a title are dropped; malformed JSON
    yields an empty list.
    """
    if not raw:
        return []

    cleaned = _FENCE_CLOSE_RE.sub("", _FENCE_OPEN_RE.sub("", raw.strip())).strip()
    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError:
        logger.warning("Could not parse dynamic areas JSON: %s", cleaned[:200])
        return []

    if isinstance(parsed, list):
        area_list = parsed
    elif isinstance(parsed, dict) and isinstance(parsed.get("areas"), list):
        area_list = parsed["areas"]
    else:
        return []

    return [area for area in (_normalize_area(item) for item in area_list) if area]


async def identify_dynamic_areas(
    deps: GenerationDeps, condensed_transcript: str, personal_notes: str
) -> list[DynamicNoteArea]:
    """Ask the model for 3-6 note areas; fall back to the four defaults."""
    notes = personal_notes.strip() or "None provided"
    outline = condensed_transcript.strip()[:CLASSIFY_TRANSCRIPT_CHARS]

    completion = await generate(
        deps,
        build_messages(
            CLASSIFY_SYSTEM_PROMPT,
            f"Transcript outline (condensed):\n{outline}\n\n"
            f"Personal notes:\n{notes}\n\n"
            "Identify the 3-6 most helpful high-level areas for summarising this meeting. "
            "Each area should have a short title and 2-3 focus reminders describing the "
            "detail to capture.",
        ),
        CLASSIFY_MAX_TOKENS,
        purpose="dynamic area classification",
    )

    areas = parse_dynamic_areas(completion.text)
    if areas:
        return areas[:MAX_AREAS]
    logger.warning("No usable dynamic areas returned; using defaults")
    return default_dynamic_areas()


def build_areas_narrative(areas: list[DynamicNoteArea]) -> str:
    """Describe *areas* in prose for the final note prompt."""
    blocks: list[str] = []
    for area in areas:
        focus = (
            "\n".join(f"- {item}" for item in area.focus)
            if area.focus
            else "- No specific focus points supplied."
        )
        block = f"Area: {area.title}\nFocus:\n{focus}"
        if area.rationale:
            block += f"\nRationale: {area.rationale}"
        blocks.append(block)
    return "\n\n".join(blocks)
