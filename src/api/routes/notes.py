"""Note endpoints: enhance notes, dynamic notes and meeting titles."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from src.api.dependencies import get_notes_service, raise_http_error, request_config
from src.api.models import (
    DynamicNoteResponse,
    EnhanceRequest,
    EnhanceResponse,
    NotesRequest,
    TitleResponse,
)
from src.errors import NotesError
from src.notes.service import NotesService
from src.templates.built_in import PromptTemplate, get_template
from src.templates.processor import parse_template

logger = logging.getLogger(__name__)

router = APIRouter()

CUSTOM_TEMPLATE_ID = "custom"


def _resolve_template(request: EnhanceRequest) -> PromptTemplate:
    """The caller's custom template when given, else the built-in one by id."""
    if request.custom_template is None:
        return get_template(request.template_id)
    parse_template(request.custom_template.user_prompt)
    return PromptTemplate(
        id=CUSTOM_TEMPLATE_ID,
        name="Custom",
        description="Caller-supplied template",
        system_prompt=request.custom_template.system_prompt,
        user_prompt=request.custom_template.user_prompt,
    )


@router.post("/api/notes/enhance", response_model=EnhanceResponse)
async def enhance(
    request: EnhanceRequest,
    service: NotesService = Depends(get_notes_service),
) -> EnhanceResponse:
    """Turn a transcript and personal notes into structured meeting notes."""
    try:
        template = _resolve_template(request)
        transcript, turns = request.transcript_input()
        notes = await service.enhance_notes(
            transcript,
            request.personal_notes,
            template=template,
            turns=turns,
            config=request_config(service, request.budget),
        )
    except NotesError as exc:
        logger.warning("Enhance request failed: %s", exc)
        raise_http_error(exc)

    return EnhanceResponse(notes=notes, template_id=template.id)


@router.post("/api/notes/dynamic", response_model=DynamicNoteResponse)
async def dynamic_note(
    request: NotesRequest,
    service: NotesService = Depends(get_notes_service),
) -> DynamicNoteResponse:
    """Generate notes organized around the meeting's own discussion areas."""
    try:
        transcript, turns = request.transcript_input()
        notes = await service.generate_dynamic_note(
            transcript,
            request.personal_notes,
            turns=turns,
            config=request_config(service, request.budget),
        )
    except NotesError as exc:
        logger.warning("Dynamic note request failed: %s", exc)
        raise_http_error(exc)

    return DynamicNoteResponse(notes=notes)


@router.post("/api/notes/title", response_model=TitleResponse)
async def title(
    request: NotesRequest,
    service: NotesService = Depends(get_notes_service),
) -> TitleResponse:
    """Suggest a short meeting title. Falls back to "Untitled Meeting"."""
    try:
        transcript, turns = request.transcript_input()
    except NotesError as exc:
        logger.warning("Title request failed: %s", exc)
        raise_http_error(exc)

    result = await service.generate_title(transcript, request.personal_notes, turns=turns)
    return TitleResponse(title=result)
