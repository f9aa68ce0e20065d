"""SQLAlchemy model for stored call analyses."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.dialects.postgresql import JSONB, UUID

from callscope.models.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CallAnalysis(Base):
    __tablename__ = "call_analyses"

    id = Column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        nullable=False,
    )
    organization_id = Column(
        ForeignKey("organizations.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    uploaded_by = Column(String(128), nullable=False, index=True)
    file_name = Column(String(255), nullable=True)
    file_size_bytes = Column(Integer, nullable=False, default=0)
    mime_type = Column(String(64), nullable=False)
    duration_sec = Column(Float, nullable=False, default=0)
    language = Column(String(64), nullable=False, default="unknown")
    transcription = Column(Text, nullable=False, default="")
    summary = Column(Text, nullable=False, default="")
    overall_score = Column(Float, nullable=False, default=0)
    sentiment = Column(String(16), nullable=False, default="Neutral")
    model_used = Column(String(128), nullable=True)
    analysis_json = Column(JSONB, nullable=False)
    status = Column(String(32), nullable=False, default="completed")
    file_path = Column(String(1024), nullable=True)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        index=True,
    )


__all__ = ["CallAnalysis"]
