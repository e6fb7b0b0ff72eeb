"""Short meeting titles. Never raises."""

from __future__ import annotations

import logging

from src.generation.completions import build_messages, generate
from src.generation.deps import GenerationDeps

logger = logging.getLogger(__name__)

UNTITLED = "Untitled Meeting"
MAX_TITLE_CHARS = 60
TITLE_MAX_TOKENS = 50
TRANSCRIPT_EXCERPT_CHARS = 500
NOTES_EXCERPT_CHARS = 200

TITLE_SYSTEM_PROMPT = (
    "You generate concise, descriptive meeting titles. Reply with only the title, nothing else."
)


def clean_title(raw: str) -> str:
    """First non-empty line, unquoted, clipped to 60 characters."""
    for line in raw.splitlines():
        line = line.strip().strip("\"'").strip()
        if line:
            return line[:MAX_TITLE_CHARS].rstrip()
    return ""


async def generate_title(deps: GenerationDeps, transcript: str, personal_notes: str) -> str:
    """Generate a title from fixed-size excerpts; ``"Untitled Meeting"`` on any failure."""
    prompt = (
        "Based on this meeting transcript and notes, generate a short, descriptive title "
        "(maximum 60 characters):\n\n"
        f"Transcript excerpt: {transcript[:TRANSCRIPT_EXCERPT_CHARS]}...\n"
        f"Notes: {personal_notes[:NOTES_EXCERPT_CHARS]}...\n\n"
        "Title:"
    )
    try:
        completion = await generate(
            deps,
            build_messages(TITLE_SYSTEM_PROMPT, prompt),
            TITLE_MAX_TOKENS,
            purpose="title",
        )
    except Exception:
        logger.exception("Error generating title")
        return UNTITLED

    return clean_title(completion.text) or UNTITLED
