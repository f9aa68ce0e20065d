"""Repository helpers for reading organizations and their analysis settings."""

from __future__ import annotations

import logging
from typing import AsyncContextManager, Callable, Optional

from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from callscope.application.interfaces import OrganizationRepositoryInterface
from callscope.domain.models import AISettings, OrganizationProfile
from callscope.models.organization import Organization

logger = logging.getLogger(__name__)


def to_profile(row: Organization) -> OrganizationProfile:
    """Build the domain profile; a corrupt settings document counts as empty."""

    raw_settings = row.ai_settings or {}
    ai_settings = AISettings()
    if not isinstance(raw_settings, dict):
        logger.warning("ai_settings corrupto para organization=%s; ignorando", row.id)
    else:
        try:
            ai_settings = AISettings.model_validate(raw_settings)
        except ValidationError as exc:
            logger.warning(
                "ai_settings inválido para organization=%s; ignorando: %s", row.id, exc
            )

    return OrganizationProfile(
        id=row.id,
        name=row.name,
        industry=row.industry or "general",
        ai_settings=ai_settings,
    )


class SqlAlchemyOrganizationRepository(OrganizationRepositoryInterface):
    def __init__(self, session_factory: Callable[[], AsyncContextManager[AsyncSession]]) -> None:
        self._session_factory = session_factory

    async def get_by_id(self, organization_id: str) -> Optional[OrganizationProfile]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(Organization).where(Organization.id == organization_id)
            )
            row = result.scalar_one_or_none()
            if row is None:
                logger.debug("Organization no encontrada id=%s", organization_id)
                return None
            return to_profile(row)


__all__ = ["SqlAlchemyOrganizationRepository", "to_profile"]
