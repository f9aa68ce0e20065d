"""End-to-end sequencing of the analysis pipeline.

Runs admission, ingestion, context resolution, prompt composition, model
invocation and normalization in order, stopping at the first failing stage.
The caller receives either a complete stored analysis or a typed
:class:`AnalysisError`; there is no partial result and no retry above the
candidate loop.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Optional

from callscope.application.interfaces import (
    AnalysisStore,
    AuditLogger,
    GenerativeBackend,
    RateLimitStore,
)
from callscope.services.response_contract import NormalizedAnalysis
from callscope.telemetry import record_admission_rejection, record_analysis_result

from .admission import AdmissionGate, utcnow
from .context import ContextResolver
from .errors import (
    AdmissionRejected,
    AllCandidatesFailed,
    AnalysisError,
    InvocationTimedOut,
    OversizedInput,
    PersistenceFailed,
)
from .ingestion import check_size, normalize_audio
from .llm import ModelInvoker
from .normalizer import normalize_result
from .prompts import compose_prompt
from .types import AnalysisRequest, PipelineConfig, PromptConfig

logger = logging.getLogger("callscope.services.analysis_pipeline")

AUDIT_ANALYSIS_COMPLETED = "analysis_completed"
AUDIT_ANALYSIS_FAILED = "analysis_failed"


@dataclass(frozen=True)
class AnalysisOutcome:
    analysis: NormalizedAnalysis
    record_id: str


class AnalysisOrchestrator:
    """Wire the pipeline stages to their external collaborators."""

    def __init__(
        self,
        config: PipelineConfig,
        *,
        backend: GenerativeBackend,
        rate_limits: RateLimitStore,
        store: AnalysisStore,
        audit: AuditLogger,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._config = config
        self._store = store
        self._audit = audit
        self._gate = AdmissionGate(
            rate_limits,
            window_seconds=config.window_seconds,
            max_requests=config.max_requests,
            clock=clock,
        )
        self._resolver = ContextResolver(
            config.catalog,
            default_strictness=config.default_strictness,
            max_terminology=config.max_terminology,
        )
        self._invoker = ModelInvoker(
            backend,
            config.candidate_models,
            decoding=config.decoding,
            timeout_seconds=config.timeout_seconds,
        )

    @property
    def config(self) -> PipelineConfig:
        return self._config

    async def analyze(self, request: AnalysisRequest) -> AnalysisOutcome:
        try:
            outcome = await self._run(request)
        except AnalysisError as exc:
            record_analysis_result(exc.kind)
            raise
        record_analysis_result("success")
        return outcome

    async def _run(self, request: AnalysisRequest) -> AnalysisOutcome:
        actor = request.actor
        endpoint = self._config.endpoint_name

        # Stage 01: admission
        decision = await self._gate.check(actor.identifier, endpoint)
        if not decision.allowed:
            record_admission_rejection(endpoint)
            raise AdmissionRejected(actor.identifier, decision.reset_in_seconds)

        # Stage 02: ingestion
        size = check_size(len(request.audio), self._config.max_audio_bytes)
        if not size.ok:
            logger.warning(
                "Audio excede el límite actor=%s bytes=%s max=%s",
                actor.identifier,
                size.size_bytes,
                size.max_bytes,
            )
            raise OversizedInput(size.size_bytes, size.max_bytes)
        audio = normalize_audio(request.audio, request.content_type, request.filename)

        # Stages 03-04: context + prompt
        resolved = self._resolver.resolve(request.organization)
        prompt = compose_prompt(
            PromptConfig(
                organization=request.organization,
                call_type=request.call_type,
                language=request.language,
                additional_instructions=request.additional_instructions,
            ),
            resolved,
        )

        # Stage 05: model invocation
        invocation = await self._invoker.invoke(prompt, audio)
        success = invocation.success
        if success is None:
            await self._audit.log_event(
                AUDIT_ANALYSIS_FAILED,
                actor,
                self._failure_metadata(request, invocation.errors, invocation.timed_out),
            )
            if invocation.timed_out:
                raise InvocationTimedOut(self._config.timeout_seconds, invocation.errors)
            raise AllCandidatesFailed(invocation.errors)

        # Stage 06: normalization
        analysis = normalize_result(success.raw_text or "", success.model_id)

        # Stage 07: persistence + audit
        try:
            record_id = await self._store.store(analysis, audio, actor, request.organization)
        except Exception as exc:
            logger.exception("No se pudo guardar el análisis actor=%s", actor.identifier)
            raise PersistenceFailed(str(exc)) from exc

        await self._audit.log_event(
            AUDIT_ANALYSIS_COMPLETED,
            actor,
            {
                "resource_type": "call_analysis",
                "resource_id": record_id,
                "organization_id": self._organization_id(request),
                "model_used": analysis.model_used,
                "file_name": request.filename,
                "file_size_bytes": audio.size_bytes,
                "mime_type": audio.mime_type,
                "attempts": len(invocation.attempts),
            },
        )
        logger.info(
            "Análisis completado actor=%s record=%s model=%s",
            actor.identifier,
            record_id,
            analysis.model_used,
        )
        return AnalysisOutcome(analysis=analysis, record_id=record_id)

    @staticmethod
    def _organization_id(request: AnalysisRequest) -> Optional[str]:
        return request.organization.id if request.organization else None

    def _failure_metadata(
        self,
        request: AnalysisRequest,
        errors: tuple[str, ...],
        timed_out: bool,
    ) -> dict[str, Any]:
        return {
            "resource_type": "call_analysis",
            "organization_id": self._organization_id(request),
            "file_name": request.filename,
            "candidates": list(self._config.candidate_models),
            "errors": list(errors),
            "timed_out": timed_out,
        }


__all__ = [
    "AUDIT_ANALYSIS_COMPLETED",
    "AUDIT_ANALYSIS_FAILED",
    "AnalysisOrchestrator",
    "AnalysisOutcome",
]
