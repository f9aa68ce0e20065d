"""Persistence of completed call analyses."""

from __future__ import annotations

import logging
from typing import AsyncContextManager, Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from callscope.application.interfaces import AnalysisStore
from callscope.domain.models import OrganizationProfile
from callscope.models.call_analysis import CallAnalysis
from callscope.pipelines.analysis.types import ActorContext, NormalizedAudio
from callscope.services.response_contract import NormalizedAnalysis
from callscope.services.storage import RecordingStorage, StorageError

logger = logging.getLogger(__name__)


def build_record(
    analysis: NormalizedAnalysis,
    audio: NormalizedAudio,
    actor: ActorContext,
    organization: Optional[OrganizationProfile],
    *,
    file_path: Optional[str] = None,
) -> CallAnalysis:
    """Map an analysis onto a ``call_analyses`` row; the full report goes to ``analysis_json``."""

    return CallAnalysis(
        organization_id=organization.id if organization else None,
        uploaded_by=actor.identifier,
        file_name=audio.filename,
        file_size_bytes=audio.size_bytes,
        mime_type=audio.mime_type,
        duration_sec=analysis.duration_sec,
        language=analysis.language,
        transcription=analysis.transcription,
        summary=analysis.summary,
        overall_score=analysis.coaching.overall_score,
        sentiment=analysis.insights.sentiment,
        model_used=analysis.model_used,
        analysis_json=analysis.to_payload(),
        status="completed",
        file_path=file_path,
    )


class SqlAlchemyAnalysisStore(AnalysisStore):
    """Insert analyses and optionally keep the raw recording in S3.

    A failed recording upload is logged and the analysis is saved without a
    ``file_path``; database errors propagate to the caller.
    """

    def __init__(
        self,
        session_factory: Callable[[], AsyncContextManager[AsyncSession]],
        *,
        recordings: Optional[RecordingStorage] = None,
    ) -> None:
        self._session_factory = session_factory
        self._recordings = recordings

    async def _upload(
        self,
        audio: NormalizedAudio,
        actor: ActorContext,
        organization: Optional[OrganizationProfile],
    ) -> Optional[str]:
        if self._recordings is None:
            return None
        try:
            return await self._recordings.upload_recording(
                audio.data,
                organization_id=organization.id if organization else None,
                actor_id=actor.identifier,
                filename=audio.filename,
                content_type=audio.mime_type,
            )
        except StorageError as exc:
            logger.warning("Recording upload failed for actor=%s: %s", actor.identifier, exc)
            return None

    async def store(
        self,
        analysis: NormalizedAnalysis,
        audio: NormalizedAudio,
        actor: ActorContext,
        organization: Optional[OrganizationProfile],
    ) -> str:
        file_path = await self._upload(audio, actor, organization)
        record = build_record(analysis, audio, actor, organization, file_path=file_path)

        async with self._session_factory() as session:
            session.add(record)
            await session.commit()
            await session.refresh(record)

        logger.info("Stored call analysis id=%s actor=%s", record.id, actor.identifier)
        return str(record.id)


__all__ = ["SqlAlchemyAnalysisStore", "build_record"]
