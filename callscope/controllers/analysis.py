"""Call analysis endpoints.

For a stage-by-stage map see `callscope.pipelines.analysis.flow.AnalysisPipeline`.
The POST `/analysis/transcribe` pipeline performs:

1. Per-actor admission and the audio size ceiling.
2. Organization lookup and industry context resolution.
3. Prompt composition and the ordered model-candidate fallback.
4. Normalization of the model answer, persistence and audit.
"""

import logging
import math
from typing import Any, Optional

from fastapi import APIRouter, File, Form, HTTPException, Request, UploadFile, status
from fastapi.responses import JSONResponse

from callscope.config.settings import settings
from callscope.controllers.dependencies import (
    ActorDep,
    CatalogDep,
    OrchestratorDep,
    OrganizationRepositoryDep,
)
from callscope.domain.models import CallType
from callscope.pipelines.analysis import AnalysisError, AnalysisPipeline, AnalysisRequest
from callscope.views import ErrorResponse, IndustrySummary

router = APIRouter(prefix="/analysis", tags=["analysis"])

logger = logging.getLogger(__name__)

PIPELINE_STAGES = tuple(AnalysisPipeline.describe())
"""Ordered pipeline metadata used for quick reference and debugging."""

_AUDIO_FILE_UPLOAD = File(...)
_OPTIONAL_FORM = Form(None)
_CALL_TYPE_FORM = Form(CallType.GENERAL.value)

_ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    code: {"model": ErrorResponse}
    for code in (400, 413, 429, 500, 502, 504)
}


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    cleaned = value.strip()
    return cleaned or None


def _verbatim_or_none(value: Optional[str]) -> Optional[str]:
    if value is None or not value.strip():
        return None
    return value


@router.post("/transcribe", responses=_ERROR_RESPONSES)
async def transcribe_call(
    actor: ActorDep,
    orchestrator: OrchestratorDep,
    organizations: OrganizationRepositoryDep,
    audio: UploadFile = _AUDIO_FILE_UPLOAD,
    organization_id: Optional[str] = _OPTIONAL_FORM,
    call_type: str = _CALL_TYPE_FORM,
    language: Optional[str] = _OPTIONAL_FORM,
    additional_instructions: Optional[str] = _OPTIONAL_FORM,
) -> dict[str, Any]:
    """Analyze an uploaded call recording and return the stored report."""

    audio_bytes = await audio.read()
    if not audio_bytes:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No audio file provided.",
        )

    organization = None
    organization_id = _blank_to_none(organization_id)
    if organization_id:
        organization = await organizations.get_by_id(organization_id)
        if organization is None:
            logger.warning(
                "Unknown organization_id=%s from actor=%s; analysing without organization",
                organization_id,
                actor.identifier,
            )

    outcome = await orchestrator.analyze(
        AnalysisRequest(
            audio=audio_bytes,
            content_type=audio.content_type,
            actor=actor,
            filename=audio.filename,
            organization=organization,
            call_type=CallType.parse(call_type),
            language=_blank_to_none(language),
            additional_instructions=_verbatim_or_none(additional_instructions),
        )
    )

    payload = outcome.analysis.to_payload()
    payload["recordId"] = outcome.record_id
    return payload


@router.get("/industries", response_model=list[IndustrySummary])
async def list_industries(catalog: CatalogDep) -> list[IndustrySummary]:
    """List every industry template known to the catalog."""

    return [
        IndustrySummary(id=template.id, name=template.name, description=template.description)
        for template in catalog.available()
    ]


async def analysis_error_handler(request: Request, exc: AnalysisError) -> JSONResponse:
    """Render pipeline failures as ``{"detail", "code"}`` with operator detail only in debug."""

    if exc.status_code >= 500:
        logger.error("Analysis failed kind=%s: %s | %s", exc.kind, exc.message, exc.detail)
    else:
        logger.info("Analysis rejected kind=%s: %s", exc.kind, exc.message)

    body = ErrorResponse(
        detail=exc.message,
        code=exc.kind,
        debug=exc.detail if settings.debug else None,
    )
    headers = None
    retry_after = getattr(exc, "retry_after", None)
    if retry_after is not None:
        headers = {"Retry-After": str(max(1, math.ceil(retry_after)))}
    return JSONResponse(
        status_code=exc.status_code,
        content=body.model_dump(exclude_none=True),
        headers=headers,
    )


__all__ = ["PIPELINE_STAGES", "analysis_error_handler", "router"]
