"""Shared dependencies and error translation for the API routes."""

from __future__ import annotations

from functools import lru_cache
from typing import NoReturn

import anthropic
import openai
from fastapi import HTTPException

from src.api.models import BudgetOverrides
from src.config import settings
from src.errors import (
    BudgetExceededError,
    GenerationConfigError,
    InputMissingError,
    NotesError,
    OperationError,
    TemplateNotFoundError,
    TemplateSyntaxError,
    TranscriptFormatError,
)
from src.notes.service import NotesService
from src.pipeline_config import PipelineConfig


@lru_cache(maxsize=1)
def _build_service() -> NotesService:
    return NotesService.from_settings(settings)


def get_notes_service() -> NotesService:
    """Return the process-wide service built from settings.

    Raises:
        HTTPException(501): The generation provider is not configured.
    """
    try:
        return _build_service()
    except GenerationConfigError as exc:
        raise HTTPException(status_code=501, detail=str(exc)) from exc


def request_config(service: NotesService, overrides: BudgetOverrides | None) -> PipelineConfig:
    """The service's configuration with any per-request budget overrides applied."""
    config = service.deps.config
    if overrides is None:
        return config
    return config.with_budget(
        max_prompt_tokens=overrides.max_prompt_tokens,
        max_chunk_tokens=overrides.max_chunk_tokens,
        chunk_summary_max_tokens=overrides.chunk_summary_max_tokens,
    )


def raise_http_error(exc: NotesError) -> NoReturn:
    """Translate a domain error into the matching HTTP error."""
    if isinstance(exc, (InputMissingError, TemplateSyntaxError, TranscriptFormatError)):
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    if isinstance(exc, TemplateNotFoundError):
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    if isinstance(exc, BudgetExceededError):
        raise HTTPException(status_code=413, detail=str(exc)) from exc
    if isinstance(exc, OperationError) and isinstance(
        exc.__cause__, (anthropic.APIStatusError, openai.APIStatusError)
    ):
        # Provider overloaded or rejecting requests: 503 keeps a proper JSON
        # body (and CORS headers) on the way back to the browser.
        raise HTTPException(status_code=503, detail=f"LLM unavailable: {exc}") from exc
    raise HTTPException(status_code=502, detail=str(exc)) from exc
