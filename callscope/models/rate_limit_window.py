"""Per-actor admission windows."""

from __future__ import annotations

from sqlalchemy import Column, DateTime, Integer, String, UniqueConstraint

from .base import Base


class RateLimitWindowRow(Base):
    __tablename__ = "rate_limit_windows"
    __table_args__ = (
        UniqueConstraint("identifier", "endpoint", name="uq_rate_limit_windows_identifier_endpoint"),
    )

    id = Column(Integer, primary_key=True, index=True)
    identifier = Column(String(128), nullable=False)
    endpoint = Column(String(64), nullable=False)
    window_start = Column(DateTime(timezone=True), nullable=False)
    request_count = Column(Integer, nullable=False, default=0)


__all__ = ["RateLimitWindowRow"]
