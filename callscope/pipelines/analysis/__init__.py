"""Call analysis pipeline package.

Modules are organised by the order in which `/analysis/transcribe` executes:

1. `admission` – per-actor rate limiting.
2. `ingestion` – size ceiling + canonical audio container type.
3. `catalog` / `context` – industry template merged with organization settings.
4. `prompts` – deterministic instruction text.
5. `llm` – ordered model-candidate fallback.
6. `normalizer` – defensive parsing of the model answer.
7. `orchestrator` – sequences the stages and calls the collaborators.
8. `flow` – human-readable description of the end-to-end stages.
"""

from .admission import AdmissionGate
from .catalog import IndustryCatalog, IndustryTemplate, normalize_industry_id
from .context import ContextResolver, ResolvedContext
from .errors import (
    AdmissionRejected,
    AllCandidatesFailed,
    AnalysisError,
    InvocationTimedOut,
    MalformedModelOutput,
    OversizedInput,
    PersistenceFailed,
)
from .flow import AnalysisPipeline, PipelineStage
from .ingestion import check_size, normalize_audio, resolve_mime_type
from .llm import ModelInvoker
from .normalizer import filter_sentinels, normalize_result
from .orchestrator import AnalysisOrchestrator, AnalysisOutcome
from .prompts import compose_prompt
from .types import (
    ActorContext,
    AnalysisRequest,
    ComposedPrompt,
    DecodingParams,
    InvocationAttempt,
    InvocationResult,
    NormalizedAudio,
    PipelineConfig,
    PromptConfig,
    RateLimitWindow,
)

__all__ = [
    "ActorContext",
    "AdmissionGate",
    "AdmissionRejected",
    "AllCandidatesFailed",
    "AnalysisError",
    "AnalysisOrchestrator",
    "AnalysisOutcome",
    "AnalysisPipeline",
    "AnalysisRequest",
    "ComposedPrompt",
    "ContextResolver",
    "DecodingParams",
    "IndustryCatalog",
    "IndustryTemplate",
    "InvocationAttempt",
    "InvocationResult",
    "InvocationTimedOut",
    "MalformedModelOutput",
    "ModelInvoker",
    "NormalizedAudio",
    "OversizedInput",
    "PersistenceFailed",
    "PipelineConfig",
    "PipelineStage",
    "PromptConfig",
    "RateLimitWindow",
    "ResolvedContext",
    "check_size",
    "compose_prompt",
    "filter_sentinels",
    "normalize_audio",
    "normalize_industry_id",
    "normalize_result",
    "resolve_mime_type",
]
