"""Pydantic request/response schemas for the Meeting Notes API."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, PositiveInt

from src.errors import TranscriptFormatError
from src.ingestion.models import TranscriptTurn
from src.ingestion.parsers import parse_transcript


class TurnModel(BaseModel):
    """A single speaker turn as supplied by the transcription system."""

    speaker: str | None = None
    text: str

    def to_turn(self) -> TranscriptTurn:
        return TranscriptTurn(speaker=self.speaker, text=self.text)


class BudgetOverrides(BaseModel):
    """Per-request prompt budget overrides; provider defaults fill the gaps."""

    max_prompt_tokens: PositiveInt | None = None
    max_chunk_tokens: PositiveInt | None = None
    chunk_summary_max_tokens: PositiveInt | None = None


class CustomTemplate(BaseModel):
    """A caller-supplied template used instead of a built-in one."""

    system_prompt: str
    user_prompt: str


class NotesRequest(BaseModel):
    """Request body shared by the note endpoints.

    ``transcript`` is plain text by default. With ``transcript_format`` set to
    ``vtt`` or ``json`` it is parsed into speaker turns before processing.
    Explicit ``turns`` take precedence over both.
    """

    transcript: str = ""
    transcript_format: Literal["text", "vtt", "json"] = "text"
    turns: list[TurnModel] | None = None
    personal_notes: str = ""
    budget: BudgetOverrides | None = None

    def transcript_input(self) -> tuple[str, list[TranscriptTurn] | None]:
        """The flat transcript and structured turns to hand to the service.

        Raises:
            TranscriptFormatError: ``transcript`` does not parse as ``transcript_format``.
        """
        if self.turns:
            return self.transcript, [t.to_turn() for t in self.turns]
        if self.transcript_format == "text" or not self.transcript.strip():
            return self.transcript, None
        try:
            turns = parse_transcript(self.transcript, self.transcript_format)
        except (ValueError, KeyError) as exc:
            raise TranscriptFormatError(
                f"Invalid {self.transcript_format} transcript: {exc}"
            ) from exc
        return "", turns


class EnhanceRequest(NotesRequest):
    """Request body for /api/notes/enhance."""

    template_id: str | None = None
    custom_template: CustomTemplate | None = None


class ChatRequest(NotesRequest):
    """Request body for /api/chat."""

    question: str
    enhanced_notes: str = ""


class EnhanceResponse(BaseModel):
    notes: str
    template_id: str


class DynamicNoteResponse(BaseModel):
    notes: str


class TitleResponse(BaseModel):
    title: str


class ChatResponse(BaseModel):
    answer: str


class TemplateSummary(BaseModel):
    """Template metadata for list views."""

    id: str
    name: str
    description: str
    is_built_in: bool


class TemplateValidationRequest(BaseModel):
    user_prompt: str


class TemplateValidationResponse(BaseModel):
    valid: bool
    errors: list[str] = []
