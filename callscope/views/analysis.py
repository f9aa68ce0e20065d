"""Schemas for the call analysis endpoints."""

from pydantic import BaseModel


class IndustrySummary(BaseModel):
    id: str
    name: str
    description: str
