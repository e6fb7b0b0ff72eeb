"""Tests for chunk summarization, condensation and chat-context reduction."""

from __future__ import annotations

import pytest

from src.errors import BudgetExceededError
from src.generation.client import Completion, StopReason
from src.ingestion.models import TranscriptChunk
from src.reduction.condense import (
    MERGED_PREAMBLE,
    SEGMENTED_PREAMBLE,
    build_condensed_transcript,
    condense_summaries,
)
from src.reduction.context import NO_CONTEXT, build_chat_context, build_chunked_chat_context
from src.reduction.summaries import build_chunk_prompt, summarize_chunks
from tests.fakes import FakeClient, speaker_turns


def _chunk(text: str, **kwargs) -> TranscriptChunk:
    return TranscriptChunk(text=text, **kwargs)


# ---------------------------------------------------------------------------
# Chunk summaries
# ---------------------------------------------------------------------------


class TestBuildChunkPrompt:
    def test_includes_metadata(self) -> None:
        chunk = _chunk(
            "[S1]: hi", speakers=["S1", "You"], start_turn=4, end_turn=9, previous_turn="[You]: yo"
        )
        prompt = build_chunk_prompt(chunk, 2, 3, "earlier summary", "legend text")

        assert "Summarize transcript segment 2 of 3" in prompt
        assert "- Speakers: S1, You" in prompt
        assert "- Transcript turns: 5 to 10" in prompt
        assert "earlier summary" in prompt
        assert "Speaker labeling:\nlegend text" in prompt
        assert "Previous speaker turn" in prompt
        assert prompt.endswith("Transcript segment 2/3:\n[S1]: hi")

    def test_first_chunk_has_no_continuity(self) -> None:
        prompt = build_chunk_prompt(_chunk("text"), 1, 1)
        assert "Speakers not identified" in prompt
        assert "Previous segment summary" not in prompt
        assert "Previous speaker turn" not in prompt


class TestSummarizeChunks:
    @pytest.mark.asyncio
    async def test_each_prompt_carries_previous_summary(self, make_deps) -> None:
        client = FakeClient(replies=["summary one", "summary two", "summary three"])
        chunks = [_chunk("first"), _chunk("second"), _chunk("third")]

        summaries = await summarize_chunks(make_deps(client), chunks)

        assert summaries == ["summary one", "summary two", "summary three"]
        assert "Previous segment summary" not in client.calls[0].user
        assert "summary one" in client.calls[1].user
        assert "summary two" in client.calls[2].user

    @pytest.mark.asyncio
    async def test_uses_summary_token_budget(self, make_deps) -> None:
        client = FakeClient()
        await summarize_chunks(make_deps(client, chunk_summary_max_tokens=321), [_chunk("x")])
        assert client.calls[0].max_tokens == 321

    @pytest.mark.asyncio
    async def test_empty_summary_falls_back_to_raw_text(self, make_deps) -> None:
        client = FakeClient(replies=[Completion(text="", stop_reason=StopReason.OK)])
        chunk = _chunk("y" * 5000)

        summaries = await summarize_chunks(make_deps(client), [chunk])

        assert summaries == ["y" * 4000]


# ---------------------------------------------------------------------------
# Condensation
# ---------------------------------------------------------------------------


class TestCondenseSummaries:
    def test_condensed_transcript_headers(self) -> None:
        assert build_condensed_transcript(["a", ""]) == (
            "### Transcript Segment 1 Summary\na\n\n### Transcript Segment 2 Summary"
        )

    @pytest.mark.asyncio
    async def test_fits_without_calls(self, make_deps) -> None:
        client = FakeClient()
        deps = make_deps(client)

        first = await condense_summaries(deps, "sys", "T: {transcript}", ["s1", "s2"], "", "legend")
        second = await condense_summaries(deps, "sys", "T: {transcript}", ["s1", "s2"], "", "legend")

        assert first == second
        assert first.startswith("T: legend\n\n" + SEGMENTED_PREAMBLE)
        assert client.calls == []

    @pytest.mark.asyncio
    async def test_merges_once_when_over_budget(self, make_deps) -> None:
        client = FakeClient(replies=["tight merged brief"])
        deps = make_deps(client, max_prompt_tokens=40)
        summaries = [" ".join(["word"] * 20)] * 3

        prompt = await condense_summaries(deps, "sys", "{transcript}", summaries)

        assert prompt == f"{MERGED_PREAMBLE}\n\ntight merged brief"
        assert len(client.calls) == 1
        assert client.calls[0].max_tokens == 1200

    @pytest.mark.asyncio
    async def test_still_over_budget_fails_without_third_call(self, make_deps) -> None:
        client = FakeClient(replies=[" ".join(["long"] * 100)])
        deps = make_deps(client, max_prompt_tokens=40)

        with pytest.raises(BudgetExceededError, match="context window"):
            await condense_summaries(deps, "sys", "{transcript}", [" ".join(["w"] * 60)])

        assert len(client.calls) == 1

    @pytest.mark.asyncio
    async def test_empty_merge_is_terminal(self, make_deps) -> None:
        client = FakeClient(
            replies=[
                Completion(text="", stop_reason=StopReason.LENGTH),
                Completion(text="", stop_reason=StopReason.LENGTH),
            ]
        )
        deps = make_deps(client, max_prompt_tokens=40)

        with pytest.raises(BudgetExceededError, match="merge returned no content"):
            await condense_summaries(deps, "sys", "{transcript}", [" ".join(["w"] * 60)])

        assert [call.max_tokens for call in client.calls] == [1200, 1800]


# ---------------------------------------------------------------------------
# Chat context
# ---------------------------------------------------------------------------


class TestBuildChatContext:
    def test_sections(self) -> None:
        context = build_chat_context(" T ", "P", "")
        assert context == "Meeting Transcript:\nT\n\nPersonal Notes:\nP"

    def test_nothing_provided(self) -> None:
        assert build_chat_context("", " ", "") == NO_CONTEXT


class TestChunkedChatContext:
    @pytest.mark.asyncio
    async def test_condensed_context_with_notes(self, make_deps) -> None:
        client = FakeClient(default="chunk summary")
        deps = make_deps(client, max_chunk_tokens=100)
        turns = speaker_turns(6, 40)

        context = await build_chunked_chat_context(
            deps, "unused flat text", "my notes", "enhanced", turns
        )

        assert context.startswith("Condensed Transcript:\n")
        assert context.endswith("Personal Notes:\nmy notes\n\nEnhanced Notes:\nenhanced")
        assert len(client.calls) == 3

    @pytest.mark.asyncio
    async def test_consolidates_when_notes_overflow(self, make_deps) -> None:
        client = FakeClient(replies=["summary", "short brief"])
        deps = make_deps(client, max_prompt_tokens=50)
        long_notes = " ".join(["note"] * 80)

        context = await build_chunked_chat_context(deps, "a short transcript", long_notes, "")

        assert context == "Unified Meeting Brief:\nshort brief"
        assert client.calls[-1].max_tokens == 25

    @pytest.mark.asyncio
    async def test_consolidated_brief_over_budget_raises(self, make_deps) -> None:
        client = FakeClient(replies=["summary", " ".join(["brief"] * 80)])
        deps = make_deps(client, max_prompt_tokens=50)

        with pytest.raises(BudgetExceededError):
            await build_chunked_chat_context(
                deps, "a short transcript", " ".join(["note"] * 80), ""
            )

    @pytest.mark.asyncio
    async def test_empty_transcript_skips_reduction(self, make_deps) -> None:
        client = FakeClient()
        context = await build_chunked_chat_context(make_deps(client), " ", "notes", "")

        assert context == "Personal Notes:\nnotes"
        assert client.calls == []
