"""Template endpoints: list built-ins and validate user templates."""

from __future__ import annotations

from fastapi import APIRouter

from src.api.models import (
    TemplateSummary,
    TemplateValidationRequest,
    TemplateValidationResponse,
)
from src.templates.built_in import BUILT_IN_TEMPLATES
from src.templates.processor import validate_template_syntax

router = APIRouter()


@router.get("/api/templates", response_model=list[TemplateSummary])
async def list_templates() -> list[TemplateSummary]:
    """List the built-in note templates."""
    return [
        TemplateSummary(
            id=template.id,
            name=template.name,
            description=template.description,
            is_built_in=template.is_built_in,
        )
        for template in BUILT_IN_TEMPLATES.values()
    ]


@router.post("/api/templates/validate", response_model=TemplateValidationResponse)
async def validate_template(request: TemplateValidationRequest) -> TemplateValidationResponse:
    """Check a template's placeholders and conditional blocks."""
    errors = validate_template_syntax(request.user_prompt)
    return TemplateValidationResponse(valid=not errors, errors=errors)
