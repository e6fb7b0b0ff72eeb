"""Entry point for note operations: prepares the transcript, then dispatches.

Each call normalizes speakers once, builds the legend, and hands the
operation an immutable :class:`PipelineConfig`. The service holds no
per-call state, so concurrent operations are independent.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import replace

from src.config import Settings
from src.generation.client import GenerationClient, build_client
from src.generation.deps import GenerationDeps
from src.generation.overflow import OverflowPredicate, overflow_predicate_for
from src.generation.tokens import estimate_tokens
from src.ingestion.chunking import TokenEstimator
from src.ingestion.models import SpeakerProfile, TranscriptTurn
from src.ingestion.speakers import prepare_transcript
from src.notes.chat import chat_with_transcript
from src.notes.dynamic_note import generate_dynamic_note
from src.notes.enhance import enhance_notes
from src.notes.title import generate_title
from src.pipeline_config import PipelineConfig
from src.templates.built_in import PromptTemplate


class NotesService:
    """Enhance, dynamic note, title and chat over one generation client."""

    def __init__(
        self,
        client: GenerationClient,
        config: PipelineConfig | None = None,
        profile: SpeakerProfile | None = None,
        estimate: TokenEstimator = estimate_tokens,
        is_overflow: OverflowPredicate | None = None,
    ) -> None:
        config = config or PipelineConfig()
        self.profile = profile
        self.deps = GenerationDeps(
            client=client,
            config=config,
            estimate=estimate,
            is_overflow=is_overflow or overflow_predicate_for(config.capabilities.provider),
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> NotesService:
        """Build a service with the configured provider, budgets and speaker profile."""
        profile = None
        if settings.speaker_name or settings.speaker_email:
            profile = SpeakerProfile(
                name=settings.speaker_name or None,
                email=settings.speaker_email or None,
            )
        return cls(
            client=build_client(settings),
            config=PipelineConfig.from_settings(settings),
            profile=profile,
        )

    def _deps(self, config: PipelineConfig | None) -> GenerationDeps:
        return self.deps if config is None else replace(self.deps, config=config)

    async def enhance_notes(
        self,
        transcript: str,
        personal_notes: str = "",
        template: PromptTemplate | None = None,
        turns: Sequence[TranscriptTurn] | None = None,
        config: PipelineConfig | None = None,
    ) -> str:
        prepared = prepare_transcript(transcript, turns, self.profile)
        has_transcript = bool(prepared.transcript.strip())
        return await enhance_notes(
            self._deps(config),
            prepared.transcript_with_legend if has_transcript else "",
            personal_notes,
            template,
            prepared.turns,
            prepared.legend.text,
        )

    async def generate_dynamic_note(
        self,
        transcript: str,
        personal_notes: str = "",
        turns: Sequence[TranscriptTurn] | None = None,
        config: PipelineConfig | None = None,
    ) -> str:
        prepared = prepare_transcript(transcript, turns, self.profile)
        return await generate_dynamic_note(
            self._deps(config),
            prepared.transcript,
            personal_notes,
            prepared.turns,
            prepared.legend.text,
        )

    async def generate_title(
        self,
        transcript: str,
        personal_notes: str = "",
        turns: Sequence[TranscriptTurn] | None = None,
        config: PipelineConfig | None = None,
    ) -> str:
        prepared = prepare_transcript(transcript, turns, self.profile)
        return await generate_title(self._deps(config), prepared.transcript, personal_notes)

    async def chat(
        self,
        question: str,
        transcript: str = "",
        personal_notes: str = "",
        enhanced_notes: str = "",
        turns: Sequence[TranscriptTurn] | None = None,
        config: PipelineConfig | None = None,
    ) -> str:
        prepared = prepare_transcript(transcript, turns, self.profile)
        has_transcript = bool(prepared.transcript.strip())
        return await chat_with_transcript(
            self._deps(config),
            prepared.transcript_with_legend if has_transcript else "",
            personal_notes,
            enhanced_notes,
            question,
            prepared.turns,
            prepared.legend.text,
        )
