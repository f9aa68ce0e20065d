"""Audit trail writer backed by the ``audit_logs`` table."""

from __future__ import annotations

import logging
from typing import Any, AsyncContextManager, Callable, Mapping

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from callscope.application.interfaces import AuditLogger
from callscope.models.audit_log import AuditLog
from callscope.pipelines.analysis.types import ActorContext

logger = logging.getLogger(__name__)


class SqlAlchemyAuditLogger(AuditLogger):
    """Best-effort audit writes; a failed insert never fails the request."""

    def __init__(self, session_factory: Callable[[], AsyncContextManager[AsyncSession]]) -> None:
        self._session_factory = session_factory

    async def log_event(
        self,
        kind: str,
        actor: ActorContext,
        metadata: Mapping[str, Any],
    ) -> None:
        details = dict(metadata)
        if actor.ip_address:
            details.setdefault("ip_address", actor.ip_address)
        if actor.user_agent:
            details.setdefault("user_agent", actor.user_agent)

        entry = AuditLog(
            actor_id=actor.identifier,
            organization_id=details.pop("organization_id", None),
            resource_type=details.pop("resource_type", "call_analysis"),
            resource_id=details.pop("resource_id", None),
            action=kind,
            metadata_json=details,
        )
        try:
            async with self._session_factory() as session:
                session.add(entry)
                await session.commit()
        except SQLAlchemyError:
            logger.exception("Failed to write audit event %s for actor=%s", kind, actor.identifier)


__all__ = ["SqlAlchemyAuditLogger"]
