"""Chat endpoint: answer questions about a single meeting."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from src.api.dependencies import get_notes_service, raise_http_error, request_config
from src.api.models import ChatRequest, ChatResponse
from src.errors import NotesError
from src.notes.service import NotesService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/api/chat", response_model=ChatResponse)
async def chat(
    request: ChatRequest,
    service: NotesService = Depends(get_notes_service),
) -> ChatResponse:
    """Answer a question from the transcript, personal notes and enhanced notes.

    Long meetings are condensed to fit the prompt budget before answering.
    """
    if not request.question.strip():
        raise HTTPException(status_code=400, detail="Question must not be empty")

    try:
        transcript, turns = request.transcript_input()
        answer = await service.chat(
            request.question,
            transcript=transcript,
            personal_notes=request.personal_notes,
            enhanced_notes=request.enhanced_notes,
            turns=turns,
            config=request_config(service, request.budget),
        )
    except NotesError as exc:
        logger.warning("Chat request failed: %s", exc)
        raise_http_error(exc)

    return ChatResponse(answer=answer)
