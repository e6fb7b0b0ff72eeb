"""Condense chunk summaries into a single prompt that fits the budget.

Two levels only: a free concatenation of the summaries, then (if that is
still over budget) one paid merge call. If the merged brief does not fit
either, the operation fails with :class:`BudgetExceededError`.
"""

from __future__ import annotations

import logging

from src.errors import BudgetExceededError
from src.generation.completions import build_messages, generate
from src.generation.deps import GenerationDeps
from src.templates.processor import render_template

logger = logging.getLogger(__name__)

MERGE_MAX_TOKENS = 1200

SEGMENTED_PREAMBLE = (
    "The original transcript was processed in segments. The following summaries "
    "capture the essential content of each part:"
)
MERGED_PREAMBLE = "Combined meeting outline derived from segmented summaries:"

MERGE_SYSTEM_PROMPT = (
    "You merge multiple meeting summaries into a single comprehensive, non-redundant brief."
)


def build_condensed_transcript(summaries: list[str]) -> str:
    """Join summaries under numbered ``### Transcript Segment N Summary`` headers."""
    sections: list[str] = []
    for index, summary in enumerate(summaries, start=1):
        header = f"### Transcript Segment {index} Summary"
        sections.append(f"{header}\n{summary}" if summary else header)
    return "\n\n".join(sections)


def _legend_prefix(speaker_legend: str | None) -> str:
    legend = speaker_legend.strip() if speaker_legend else ""
    return f"{legend}\n\n" if legend else ""


def _merge_prompt(summaries: list[str]) -> str:
    joined = "\n\n".join(summaries)
    return (
        "Combine the following meeting segment summaries into a single cohesive outline "
        "that preserves every critical detail, decision, action item, and nuance. Keep it "
        "concise but information rich, suitable for feeding into a downstream "
        f"summarization template.\n\n{joined}"
    )


async def condense_summaries(
    deps: GenerationDeps,
    system_prompt: str,
    user_template: str,
    summaries: list[str],
    personal_notes: str = "",
    speaker_legend: str | None = None,
) -> str:
    """Substitute condensed chunk summaries into *user_template*.

    Args:
        deps: Generation collaborators; ``config.budget.max_prompt_tokens`` is
            the ceiling for ``system_prompt + rendered template``.
        system_prompt: System prompt of the call the result will feed.
        user_template: Template containing a ``{transcript}`` placeholder.
        summaries: Ordered per-chunk summaries.
        personal_notes: Notes substituted for ``{personalNotes}``.
        speaker_legend: Legend text prefixed to the condensed transcript.

    Returns:
        The rendered user prompt.

    Raises:
        BudgetExceededError: If the prompt still exceeds the budget after
            the one-shot merge, or the merge produced no text.
    """
    max_prompt_tokens = deps.config.budget.max_prompt_tokens
    prefix = _legend_prefix(speaker_legend)

    condensed = f"{prefix}{SEGMENTED_PREAMBLE}\n\n{build_condensed_transcript(summaries)}"
    prompt = render_template(user_template, condensed, personal_notes)
    estimated = deps.estimate(f"{system_prompt}\n{prompt}")
    if estimated <= max_prompt_tokens:
        return prompt

    logger.info(
        "Condensed transcript (%d tokens) exceeds budget of %d; merging %d summaries",
        estimated,
        max_prompt_tokens,
        len(summaries),
    )
    merged = await generate(
        deps,
        build_messages(MERGE_SYSTEM_PROMPT, _merge_prompt(summaries)),
        MERGE_MAX_TOKENS,
        purpose="summary merge",
    )
    if not merged.text:
        raise BudgetExceededError(
            "Unable to reduce transcript within model context window: merge returned no content"
        )

    condensed = f"{prefix}{MERGED_PREAMBLE}\n\n{merged.text}"
    prompt = render_template(user_template, condensed, personal_notes)
    estimated = deps.estimate(f"{system_prompt}\n{prompt}")
    if estimated > max_prompt_tokens:
        raise BudgetExceededError(
            f"Unable to reduce transcript within model context window "
            f"({estimated} > {max_prompt_tokens} tokens)"
        )
    return prompt
