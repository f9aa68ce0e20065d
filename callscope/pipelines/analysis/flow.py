"""High-level orchestration map for the call analysis pipeline.

``orchestrator.AnalysisOrchestrator`` runs the stages below in order; this
module documents the canonical execution order so team members can navigate
the codebase more easily:

1. ``admission`` – per-actor sliding-window rate limit.
2. ``ingestion`` – size ceiling and canonical audio container type.
3. ``context`` – industry template merged with organization settings.
4. ``prompts`` – deterministic instruction text with the output contract.
5. ``llm`` – ordered walk over the model candidates.
6. ``normalizer`` – parse, deep-default and sentinel-filter the answer.
7. ``persistence`` – hand the record to storage and the audit trail.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List


@dataclass(frozen=True)
class PipelineStage:
    """Human-readable description of one stage in the analysis pipeline."""

    order: int
    name: str
    module: str
    summary: str


class AnalysisPipeline:
    """Utility wrapper for documenting the `/analysis/transcribe` flow."""

    _STAGES: List[PipelineStage] = [
        PipelineStage(
            1,
            "Admission",
            "callscope.pipelines.analysis.admission",
            "Count the request against the actor's window; reject once the ceiling is hit.",
        ),
        PipelineStage(
            2,
            "Ingestion",
            "callscope.pipelines.analysis.ingestion",
            "Enforce the byte ceiling and map the declared container label to a canonical type.",
        ),
        PipelineStage(
            3,
            "Context Resolution",
            "callscope.pipelines.analysis.context",
            "Resolve the industry template and merge the organization's analysis settings.",
        ),
        PipelineStage(
            4,
            "Prompt Composition",
            "callscope.pipelines.analysis.prompts",
            "Render the fixed section order, output contract and scoring rubric.",
        ),
        PipelineStage(
            5,
            "Model Invocation",
            "callscope.pipelines.analysis.llm",
            "Try each Gemini candidate once, in order, within the wall-clock ceiling.",
        ),
        PipelineStage(
            6,
            "Result Normalization",
            "callscope.pipelines.analysis.normalizer",
            "Parse JSON, default every field, drop placeholder red flags, tag provenance.",
        ),
        PipelineStage(
            7,
            "Persistence & Audit",
            "callscope.pipelines.analysis.orchestrator",
            "Upload the recording (S3), insert the analysis row and write the audit event.",
        ),
    ]

    @classmethod
    def describe(cls) -> Iterable[PipelineStage]:
        """Expose the ordered list of stages for debugging and documentation."""

        return tuple(cls._STAGES)


__all__ = ["AnalysisPipeline", "PipelineStage"]
