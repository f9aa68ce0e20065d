from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Mapping, Optional

if TYPE_CHECKING:
    from callscope.domain.models import OrganizationProfile
    from callscope.pipelines.analysis.types import (
        ActorContext,
        DecodingParams,
        NormalizedAudio,
        RateLimitWindow,
    )
    from callscope.services.response_contract import NormalizedAnalysis


class OrganizationRepositoryInterface(ABC):
    """Read access to organizations and their analysis settings"""

    @abstractmethod
    async def get_by_id(self, organization_id: str) -> Optional[OrganizationProfile]:
        ...


class RateLimitStore(ABC):
    """Storage for per-actor admission windows"""

    @abstractmethod
    async def get_window(self, identifier: str, endpoint: str) -> Optional[RateLimitWindow]:
        ...

    @abstractmethod
    async def save_window(self, window: RateLimitWindow) -> None:
        ...


class GenerativeBackend(ABC):
    """One call to a generative model with prompt + audio"""

    @abstractmethod
    async def generate(
        self,
        model_id: str,
        prompt: str,
        audio: NormalizedAudio,
        decoding: DecodingParams,
    ) -> str:
        ...


class AnalysisStore(ABC):
    """Sink for completed analyses; returns the new record id"""

    @abstractmethod
    async def store(
        self,
        analysis: NormalizedAnalysis,
        audio: NormalizedAudio,
        actor: ActorContext,
        organization: Optional[OrganizationProfile],
    ) -> str:
        ...


class AuditLogger(ABC):
    """Audit trail for analysis outcomes"""

    @abstractmethod
    async def log_event(
        self,
        kind: str,
        actor: ActorContext,
        metadata: Mapping[str, Any],
    ) -> None:
        ...
