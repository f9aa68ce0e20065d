"""Typed containers shared across the call analysis pipeline.

These dataclasses live in their own module so the other stages
(`ingestion`, `context`, `prompts`, `llm`, `orchestrator`) can import them
without creating circular dependencies.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Literal, Optional, Tuple

from callscope.domain.models import CallType, OrganizationProfile, Strictness

if TYPE_CHECKING:
    from callscope.config.settings import Settings

    from .catalog import IndustryCatalog


@dataclass(frozen=True)
class ActorContext:
    """Who is calling: authenticated user id or network origin."""

    identifier: str
    user_id: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None


@dataclass(frozen=True)
class NormalizedAudio:
    """Audio bytes tagged with the canonical container type."""

    data: bytes
    mime_type: str
    original_mime_type: Optional[str]
    filename: Optional[str]

    @property
    def size_bytes(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class SizeCheck:
    ok: bool
    size_bytes: int
    max_bytes: int


@dataclass(frozen=True)
class PromptConfig:
    """Per-request inputs to prompt composition."""

    organization: Optional[OrganizationProfile] = None
    call_type: CallType = CallType.GENERAL
    language: Optional[str] = None
    additional_instructions: Optional[str] = None


@dataclass(frozen=True)
class AnalysisRequest:
    """Inbound payload of one analysis call."""

    audio: bytes
    content_type: Optional[str]
    actor: ActorContext
    filename: Optional[str] = None
    organization: Optional[OrganizationProfile] = None
    call_type: CallType = CallType.GENERAL
    language: Optional[str] = None
    additional_instructions: Optional[str] = None


@dataclass(frozen=True)
class ComposedPrompt:
    """Final instruction text plus the output contract embedded in it."""

    text: str
    schema_contract: str

    def __len__(self) -> int:
        return len(self.text)


@dataclass(frozen=True)
class DecodingParams:
    """Greedy decoding for reproducible scoring."""

    temperature: float = 0.0
    top_k: int = 1
    response_mime_type: str = "application/json"


@dataclass(frozen=True)
class InvocationAttempt:
    """Outcome of calling one model candidate."""

    model_id: str
    outcome: Literal["success", "failure"]
    raw_text: Optional[str] = None
    error_message: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.outcome == "success"


@dataclass(frozen=True)
class InvocationResult:
    """Ordered attempt log of one pass over the candidate list."""

    attempts: Tuple[InvocationAttempt, ...]
    timed_out: bool = False

    @property
    def success(self) -> Optional[InvocationAttempt]:
        if self.attempts and self.attempts[-1].succeeded:
            return self.attempts[-1]
        return None

    @property
    def errors(self) -> Tuple[str, ...]:
        return tuple(
            f"{attempt.model_id}: {attempt.error_message}"
            for attempt in self.attempts
            if not attempt.succeeded
        )


@dataclass
class RateLimitWindow:
    """Mutable request counter for one (identifier, endpoint) pair."""

    identifier: str
    endpoint: str
    window_start: datetime
    request_count: int


@dataclass(frozen=True)
class AdmissionDecision:
    allowed: bool
    remaining: int
    reset_in_seconds: float
    request_count: int


@dataclass(frozen=True)
class PipelineConfig:
    """Deployment-level knobs, frozen at startup and injected into the orchestrator."""

    catalog: "IndustryCatalog"
    candidate_models: Tuple[str, ...]
    max_audio_bytes: int = 20 * 1024 * 1024
    window_seconds: float = 60.0
    max_requests: int = 20
    default_strictness: Strictness = Strictness.STRICT
    timeout_seconds: float = 120.0
    max_terminology: int = 30
    endpoint_name: str = "analysis"
    decoding: DecodingParams = field(default_factory=DecodingParams)

    def __post_init__(self) -> None:
        if not self.candidate_models:
            raise ValueError("At least one model candidate is required.")

    @classmethod
    def from_settings(
        cls, app_settings: "Settings", catalog: "IndustryCatalog"
    ) -> "PipelineConfig":
        gemini = app_settings.gemini
        return cls(
            catalog=catalog,
            candidate_models=tuple(gemini.candidate_models),
            max_audio_bytes=app_settings.analysis.max_audio_bytes,
            window_seconds=app_settings.rate_limit.window_seconds,
            max_requests=app_settings.rate_limit.max_requests,
            default_strictness=Strictness(app_settings.analysis.default_strictness),
            timeout_seconds=gemini.timeout_seconds,
            max_terminology=app_settings.analysis.max_terminology,
            endpoint_name=app_settings.analysis.endpoint_name,
            decoding=DecodingParams(
                temperature=gemini.temperature,
                top_k=gemini.top_k,
                response_mime_type=gemini.response_mime_type,
            ),
        )


__all__ = [
    "ActorContext",
    "AdmissionDecision",
    "AnalysisRequest",
    "ComposedPrompt",
    "DecodingParams",
    "InvocationAttempt",
    "InvocationResult",
    "NormalizedAudio",
    "PipelineConfig",
    "PromptConfig",
    "RateLimitWindow",
    "SizeCheck",
]
