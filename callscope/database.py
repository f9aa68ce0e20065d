"""Async engine, sessions and table bootstrap for the analysis store."""

from __future__ import annotations

import logging
import re
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional

from sqlalchemy import MetaData, text
from sqlalchemy.ext.asyncio import (
    AsyncConnection,
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from callscope.config.settings import DatabaseConfig, settings
from callscope.models import Base

logger = logging.getLogger(__name__)

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def resolve_schema(raw_schema: Optional[str]) -> Optional[str]:
    """Configured schema if it is a plain SQL identifier, else the default search path."""

    schema = (raw_schema or "").strip()
    if not schema:
        return None
    if not _IDENTIFIER.fullmatch(schema):
        logger.warning("Invalid DB schema %r; using the default search_path", raw_schema)
        return None
    return schema


def bind_schema(metadata: MetaData, schema: Optional[str]) -> None:
    """Point every table without an explicit schema at ``schema``."""

    if not schema:
        return
    metadata.schema = schema
    for table in metadata.tables.values():
        if table.schema is None:
            table.schema = schema


def build_engine(config: DatabaseConfig, *, echo: bool = False) -> AsyncEngine:
    # Serverless Postgres pauses idle instances; pooled connections would pin them.
    options: dict[str, Any] = {"echo": echo, "pool_pre_ping": True}
    if config.serverless or echo:
        options["poolclass"] = NullPool
    return create_async_engine(config.url, **options)


SCHEMA = resolve_schema(settings.database.schema_name)
bind_schema(Base.metadata, SCHEMA)

engine: AsyncEngine = build_engine(settings.database, echo=settings.debug)

SessionFactory = async_sessionmaker(
    engine,
    expire_on_commit=False,
    class_=AsyncSession,
)


async def _use_schema(target: AsyncSession | AsyncConnection) -> None:
    if SCHEMA:
        await target.execute(text(f'SET search_path TO "{SCHEMA}", public'))


@asynccontextmanager
async def session_scope() -> AsyncIterator[AsyncSession]:
    """Session bound to the configured schema; repositories commit explicitly."""

    async with SessionFactory() as session:
        await _use_schema(session)
        yield session


async def init_models() -> None:
    """Create the analysis tables (and schema) when missing."""

    async with engine.begin() as conn:
        if SCHEMA:
            await conn.execute(text(f'CREATE SCHEMA IF NOT EXISTS "{SCHEMA}"'))
        await _use_schema(conn)
        await conn.run_sync(Base.metadata.create_all)

    logger.info(
        "Database ready schema=%s tables=%s",
        SCHEMA or "default",
        sorted(table.name for table in Base.metadata.sorted_tables),
    )


async def dispose_engine() -> None:
    await engine.dispose()


__all__ = [
    "SCHEMA",
    "SessionFactory",
    "bind_schema",
    "build_engine",
    "dispose_engine",
    "engine",
    "init_models",
    "resolve_schema",
    "session_scope",
]
