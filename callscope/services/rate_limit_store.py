"""Storage backends for per-actor admission windows."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import AsyncContextManager, Callable, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from callscope.application.interfaces import RateLimitStore
from callscope.models.rate_limit_window import RateLimitWindowRow
from callscope.pipelines.analysis.types import RateLimitWindow

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InMemoryRateLimitStore(RateLimitStore):
    """Process-local windows for tests and single-worker deployments.

    Windows older than twice the window duration are pruned on every save so
    the map does not grow with the number of distinct actors.
    """

    def __init__(
        self,
        window_seconds: float = 60.0,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._windows: dict[str, RateLimitWindow] = {}
        self._retention = timedelta(seconds=window_seconds * 2)
        self._clock = clock

    @staticmethod
    def _key(identifier: str, endpoint: str) -> str:
        return f"{identifier}:{endpoint}"

    async def get_window(self, identifier: str, endpoint: str) -> Optional[RateLimitWindow]:
        window = self._windows.get(self._key(identifier, endpoint))
        if window is None:
            return None
        return RateLimitWindow(
            identifier=window.identifier,
            endpoint=window.endpoint,
            window_start=window.window_start,
            request_count=window.request_count,
        )

    async def save_window(self, window: RateLimitWindow) -> None:
        self._windows[self._key(window.identifier, window.endpoint)] = RateLimitWindow(
            identifier=window.identifier,
            endpoint=window.endpoint,
            window_start=window.window_start,
            request_count=window.request_count,
        )
        self.prune()

    def prune(self) -> int:
        cutoff = self._clock() - self._retention
        stale = [key for key, item in self._windows.items() if item.window_start < cutoff]
        for key in stale:
            del self._windows[key]
        return len(stale)

    def __len__(self) -> int:
        return len(self._windows)


class SqlAlchemyRateLimitStore(RateLimitStore):
    """Windows kept in ``rate_limit_windows``; expired rows are overwritten in place."""

    def __init__(self, session_factory: Callable[[], AsyncContextManager[AsyncSession]]) -> None:
        self._session_factory = session_factory

    async def get_window(self, identifier: str, endpoint: str) -> Optional[RateLimitWindow]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(RateLimitWindowRow).where(
                    RateLimitWindowRow.identifier == identifier,
                    RateLimitWindowRow.endpoint == endpoint,
                )
            )
            row = result.scalar_one_or_none()
            if row is None:
                return None
            window_start = row.window_start
            if window_start.tzinfo is None:
                window_start = window_start.replace(tzinfo=timezone.utc)
            return RateLimitWindow(
                identifier=row.identifier,
                endpoint=row.endpoint,
                window_start=window_start,
                request_count=row.request_count,
            )

    async def save_window(self, window: RateLimitWindow) -> None:
        async with self._session_factory() as session:
            result = await session.execute(
                select(RateLimitWindowRow).where(
                    RateLimitWindowRow.identifier == window.identifier,
                    RateLimitWindowRow.endpoint == window.endpoint,
                )
            )
            row = result.scalar_one_or_none()
            if row is None:
                row = RateLimitWindowRow(
                    identifier=window.identifier,
                    endpoint=window.endpoint,
                )
                session.add(row)
            row.window_start = window.window_start
            row.request_count = window.request_count
            await session.commit()


__all__ = ["InMemoryRateLimitStore", "SqlAlchemyRateLimitStore"]
