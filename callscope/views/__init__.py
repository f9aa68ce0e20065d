"""Pydantic schemas used as views in the MVC architecture."""

from .analysis import IndustrySummary
from .common import ErrorResponse

__all__ = ["ErrorResponse", "IndustrySummary"]
