"""Built-in prompt templates for note enhancement."""

from __future__ import annotations

from dataclasses import dataclass

from src.errors import TemplateNotFoundError


@dataclass(frozen=True)
class PromptTemplate:
    """A system prompt plus a user prompt written in the template language."""

    id: str
    name: str
    description: str
    system_prompt: str
    user_prompt: str
    is_built_in: bool = False


DEFAULT_TEMPLATE_ID = "default-summary"

# Routed to the multi-pass dynamic note workflow rather than rendered directly.
DYNAMIC_NOTE_TEMPLATE_ID = "dynamic-note"

_DEFAULT_SUMMARY_PROMPT = """
{{#if hasPersonalNotes}}
Incorporate these personal notes as additional signal. When personal notes overlap with \
the transcript, prefer the personal notes phrasing if it is more precise; otherwise add \
their details as nested sub-bullets.
{personalNotes}
{{/if}}

## Output Rules
- Markdown bullets only
- No paragraphs, preamble, or closing text
- 3 to 7 top-level bullets, each a specific theme with a bold 2 to 5 word heading
- 2 to 5 sub-bullets under each top-level bullet

## Content Priority (highest to lowest)
1. Decisions with context and rationale
2. Actions with explicit owners and dates, only if stated
3. Metrics and concrete numbers
4. Risks, blockers, dependencies
5. Open or unresolved questions

## Tagging
Tag sub-bullets only when the meeting created a clear new item, in bold:
- **[Decision]** for explicit decisions
- **[Action]** for new tasks with an owner
- **[Risk]** or **[Blocker]** for explicit risks or blockers

## Speaker Handling
- Use real names only if clearly mapped
- Never assign owners using placeholder labels such as S1 or S2; omit the owner instead

## Input
Meeting transcript:
{transcript}"""

_ACTION_FOCUSED_PROMPT = """Extract actionable items from this meeting with clear ownership and deadlines.

{{#if hasPersonalNotes}}
Consider both the transcript and personal notes for complete context:

Personal Notes:
{personalNotes}
{{/if}}

## Key Decisions
- Decision: one-line rationale (maximum 5)

## Action Items
- [ ] Task description (Owner: name, Due: date, Priority: High/Medium/Low)

## Open Questions
- Question or blocker

Be direct. Skip narrative.

Meeting Transcript:
{transcript}"""

BUILT_IN_TEMPLATES: dict[str, PromptTemplate] = {
    t.id: t
    for t in (
        PromptTemplate(
            id=DEFAULT_TEMPLATE_ID,
            name="Default Summary",
            description="Adaptive top-level theme bullets with concise sub-bullets.",
            system_prompt=(
                "You are an executive meeting summarizer. Produce notes that are scannable "
                "in under 60 seconds and still useful weeks later without replaying the meeting."
            ),
            user_prompt=_DEFAULT_SUMMARY_PROMPT,
            is_built_in=True,
        ),
        PromptTemplate(
            id=DYNAMIC_NOTE_TEMPLATE_ID,
            name="Dynamic Note",
            description="Detects the meeting's themes and writes bullet notes organized by them.",
            system_prompt=(
                "You are a dynamic meeting note assistant. Actual prompting occurs "
                "programmatically to run multi-stage analysis."
            ),
            user_prompt="Meeting Transcript:\n{transcript}",
            is_built_in=True,
        ),
        PromptTemplate(
            id="action-focused",
            name="Action-Focused",
            description="Action items, owners and deadlines with minimal narrative.",
            system_prompt=(
                "You are an expert at extracting actionable items from meetings. Focus on "
                "concrete tasks, clear ownership, and realistic deadlines. Be direct and concise."
            ),
            user_prompt=_ACTION_FOCUSED_PROMPT,
            is_built_in=True,
        ),
    )
}


def get_template(template_id: str | None = None) -> PromptTemplate:
    """Look up a built-in template, defaulting to ``default-summary``.

    Raises:
        TemplateNotFoundError: If no template has *template_id*.
    """
    selected = template_id or DEFAULT_TEMPLATE_ID
    template = BUILT_IN_TEMPLATES.get(selected)
    if template is None:
        raise TemplateNotFoundError(f"Template not found: {selected}")
    return template
