"""Declarative base shared by every ORM model."""

from sqlalchemy.orm import declarative_base

Base = declarative_base()

__all__ = ["Base"]
