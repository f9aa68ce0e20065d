"""Shared fakes and fixtures for the analysis pipeline tests."""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from pathlib import Path
import sys
from typing import Any, Callable, Mapping, Optional

import pytest

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from callscope.application.interfaces import (  # noqa: E402
    AnalysisStore,
    AuditLogger,
    GenerativeBackend,
)
from callscope.domain.models import OrganizationProfile  # noqa: E402
from callscope.pipelines.analysis import (  # noqa: E402
    ActorContext,
    AnalysisOrchestrator,
    IndustryCatalog,
    IndustryTemplate,
    PipelineConfig,
)
from callscope.services.rate_limit_store import InMemoryRateLimitStore  # noqa: E402

VALID_ANALYSIS = {
    "language": "English",
    "durationSec": 184,
    "transcription": "A: Hello, thanks for calling.\nC: Hi, I need help with my plan.",
    "summary": "- Customer asked about plan options",
    "insights": {"sentiment": "Positive", "sentimentScore": 72, "topics": ["plans"]},
    "coaching": {
        "overallScore": 64,
        "strengths": ["Clear greeting"],
        "weaknesses": ["No needs discovery", "Rushed close"],
        "redFlags": [],
    },
}


class FakeClock:
    """Settable UTC clock for admission tests."""

    def __init__(self, start: Optional[datetime] = None) -> None:
        self.now = start or datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now = self.now + timedelta(seconds=seconds)


class ScriptedBackend(GenerativeBackend):
    """Answers per model id: a string, an exception instance, or a coroutine factory."""

    def __init__(self, script: Mapping[str, Any]) -> None:
        self.script = dict(script)
        self.calls: list[str] = []
        self.prompts: list[str] = []

    async def generate(self, model_id, prompt, audio, decoding) -> str:
        self.calls.append(model_id)
        self.prompts.append(prompt)
        answer = self.script.get(model_id, RuntimeError(f"model {model_id} not found"))
        if isinstance(answer, BaseException):
            raise answer
        if callable(answer):
            return await answer()
        return answer


class RecordingStore(AnalysisStore):
    def __init__(self, fail_with: Optional[Exception] = None) -> None:
        self.saved: list[tuple[Any, Any, Any, Any]] = []
        self.fail_with = fail_with

    async def store(self, analysis, audio, actor, organization) -> str:
        if self.fail_with is not None:
            raise self.fail_with
        self.saved.append((analysis, audio, actor, organization))
        return f"record-{len(self.saved)}"


class RecordingAudit(AuditLogger):
    def __init__(self) -> None:
        self.events: list[tuple[str, ActorContext, dict[str, Any]]] = []

    async def log_event(self, kind, actor, metadata) -> None:
        self.events.append((kind, actor, dict(metadata)))


def make_template(industry_id: str, **overrides: Any) -> IndustryTemplate:
    values: dict[str, Any] = {
        "id": industry_id,
        "name": industry_id.replace("_", " ").title(),
        "description": f"{industry_id} calls",
        "context": f"Context for {industry_id}.",
        "evaluation_criteria": tuple(f"{industry_id} criterion {i}" for i in range(1, 8)),
        "compliance_requirements": (f"{industry_id} disclosure",),
        "key_terminology": (f"{industry_id}-term",),
        "common_objections": ("Too expensive",),
        "red_flag_indicators": ("Misleading claims",),
        "quality_markers": ("Clear next steps",),
    }
    values.update(overrides)
    return IndustryTemplate(**values)


@pytest.fixture
def catalog() -> IndustryCatalog:
    return IndustryCatalog(
        [
            make_template("general"),
            make_template(
                "healthcare",
                name="Healthcare",
                compliance_requirements=("Verify patient identity", "Protect PHI"),
                key_terminology=("PHI", "HIPAA", "copay"),
            ),
        ]
    )


@pytest.fixture
def disk_catalog() -> IndustryCatalog:
    return IndustryCatalog.load()


@pytest.fixture
def actor() -> ActorContext:
    return ActorContext(identifier="user-42", user_id="user-42", ip_address="10.0.0.5")


@pytest.fixture
def organization() -> OrganizationProfile:
    return OrganizationProfile.model_validate(
        {
            "id": "org-1",
            "name": "Acme Health",
            "industry": "healthcare",
            "aiSettings": {
                "context": "Regional clinic network.",
                "products": ["Annual checkup"],
                "complianceScripts": ["Read the recording disclosure"],
                "customTerminology": ["copay", "EHR"],
                "scoringPreferences": {"strictness": "moderate"},
            },
        }
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def valid_payload() -> str:
    return json.dumps(VALID_ANALYSIS)


@pytest.fixture
def make_orchestrator(catalog: IndustryCatalog, clock: FakeClock) -> Callable[..., Any]:
    """Factory returning ``(orchestrator, backend, store, audit)`` wired to fakes."""

    def _build(
        script: Mapping[str, Any],
        *,
        candidates: tuple[str, ...] = ("model-a", "model-b"),
        store: Optional[RecordingStore] = None,
        **config: Any,
    ):
        backend = ScriptedBackend(script)
        store = store or RecordingStore()
        audit = RecordingAudit()
        pipeline_config = PipelineConfig(catalog=catalog, candidate_models=candidates, **config)
        orchestrator = AnalysisOrchestrator(
            pipeline_config,
            backend=backend,
            rate_limits=InMemoryRateLimitStore(
                window_seconds=pipeline_config.window_seconds, clock=clock
            ),
            store=store,
            audit=audit,
            clock=clock,
        )
        return orchestrator, backend, store, audit

    return _build
