"""Common FastAPI dependencies reused across controllers."""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Annotated, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from callscope.application.interfaces import (
    OrganizationRepositoryInterface,
    RateLimitStore,
)
from callscope.config.settings import settings
from callscope.database import session_scope
from callscope.pipelines.analysis import (
    ActorContext,
    AnalysisOrchestrator,
    IndustryCatalog,
    PipelineConfig,
)
from callscope.services.analysis_repository import SqlAlchemyAnalysisStore
from callscope.services.audit_repository import SqlAlchemyAuditLogger
from callscope.services.generative_client import GeminiBackend
from callscope.services.organization_repository import SqlAlchemyOrganizationRepository
from callscope.services.rate_limit_store import (
    InMemoryRateLimitStore,
    SqlAlchemyRateLimitStore,
)
from callscope.services.storage import RecordingStorage
from callscope.utils import AuthenticationError, decode_access_token

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)
ANONYMOUS_ACTOR = "anonymous"


def _client_ip(request: Request) -> Optional[str]:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first_hop = forwarded.split(",")[0].strip()
        if first_hop:
            return first_hop
    real_ip = (request.headers.get("x-real-ip") or "").strip()
    if real_ip:
        return real_ip
    if request.client and request.client.host:
        return request.client.host
    return None


async def get_actor_context(
    request: Request,
    credentials: Annotated[
        Optional[HTTPAuthorizationCredentials], Depends(bearer_scheme)
    ],
) -> ActorContext:
    """Identify the caller by token subject, falling back to the network origin.

    An invalid token is not an error here: the request is still admitted and
    rate-limited under its IP address.
    """

    ip_address = _client_ip(request)
    user_id: Optional[str] = None
    if credentials is not None:
        try:
            user_id = decode_access_token(credentials.credentials).actor_id
        except AuthenticationError:
            logger.info("Ignoring invalid bearer token from ip=%s", ip_address)

    actor = ActorContext(
        identifier=user_id or ip_address or ANONYMOUS_ACTOR,
        user_id=user_id,
        ip_address=ip_address,
        user_agent=request.headers.get("user-agent"),
    )
    request.state.actor = actor
    return actor


@lru_cache
def get_catalog() -> IndustryCatalog:
    return IndustryCatalog.load()


def _build_rate_limit_store() -> RateLimitStore:
    if settings.rate_limit.backend == "memory":
        return InMemoryRateLimitStore(window_seconds=settings.rate_limit.window_seconds)
    return SqlAlchemyRateLimitStore(session_scope)


@lru_cache
def get_orchestrator() -> AnalysisOrchestrator:
    """Single orchestrator per process, built from settings at first use."""

    config = PipelineConfig.from_settings(settings, get_catalog())
    recordings = RecordingStorage() if settings.analysis.store_recordings else None
    logger.info(
        "Analysis pipeline ready candidates=%s industries=%s rate_limit=%s",
        list(config.candidate_models),
        len(config.catalog),
        settings.rate_limit.backend,
    )
    return AnalysisOrchestrator(
        config,
        backend=GeminiBackend(),
        rate_limits=_build_rate_limit_store(),
        store=SqlAlchemyAnalysisStore(session_scope, recordings=recordings),
        audit=SqlAlchemyAuditLogger(session_scope),
    )


def get_organization_repository() -> OrganizationRepositoryInterface:
    return SqlAlchemyOrganizationRepository(session_scope)


ActorDep = Annotated[ActorContext, Depends(get_actor_context)]
CatalogDep = Annotated[IndustryCatalog, Depends(get_catalog)]
OrchestratorDep = Annotated[AnalysisOrchestrator, Depends(get_orchestrator)]
OrganizationRepositoryDep = Annotated[
    OrganizationRepositoryInterface, Depends(get_organization_repository)
]


__all__ = [
    "ActorDep",
    "CatalogDep",
    "OrchestratorDep",
    "OrganizationRepositoryDep",
    "bearer_scheme",
    "get_actor_context",
    "get_catalog",
    "get_orchestrator",
    "get_organization_repository",
]
