"""SQLAlchemy models for the analysis backend."""

from .base import Base
from .audit_log import AuditLog  # noqa: F401
from .call_analysis import CallAnalysis  # noqa: F401
from .organization import Organization  # noqa: F401
from .rate_limit_window import RateLimitWindowRow  # noqa: F401

__all__ = [
    "Base",
    "AuditLog",
    "CallAnalysis",
    "Organization",
    "RateLimitWindowRow",
]
