"""Per-actor admission control (Stage 01 of the analysis pipeline).

Best-effort sliding window: the stored window is read, checked and written
back without a lock, so concurrent requests from one actor may slightly
overshoot the ceiling. The gate deters abuse; it is not a hard quota.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable

from callscope.application.interfaces import RateLimitStore

from .types import AdmissionDecision, RateLimitWindow

logger = logging.getLogger("callscope.services.analysis_pipeline")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AdmissionGate:
    """Admit or reject a request for one (identifier, endpoint) pair."""

    def __init__(
        self,
        store: RateLimitStore,
        *,
        window_seconds: float,
        max_requests: int,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._store = store
        self._window = timedelta(seconds=window_seconds)
        self._max_requests = max_requests
        self._clock = clock

    async def check(self, identifier: str, endpoint: str) -> AdmissionDecision:
        now = self._clock()
        window = await self._store.get_window(identifier, endpoint)

        if window is not None and now - window.window_start < self._window:
            reset_in = (window.window_start + self._window - now).total_seconds()
            if window.request_count >= self._max_requests:
                logger.warning(
                    "Admisión rechazada identifier=%s endpoint=%s count=%s",
                    identifier,
                    endpoint,
                    window.request_count,
                )
                return AdmissionDecision(
                    allowed=False,
                    remaining=0,
                    reset_in_seconds=reset_in,
                    request_count=window.request_count,
                )
            window.request_count += 1
            await self._store.save_window(window)
            return AdmissionDecision(
                allowed=True,
                remaining=self._max_requests - window.request_count,
                reset_in_seconds=reset_in,
                request_count=window.request_count,
            )

        fresh = RateLimitWindow(
            identifier=identifier,
            endpoint=endpoint,
            window_start=now,
            request_count=1,
        )
        await self._store.save_window(fresh)
        return AdmissionDecision(
            allowed=True,
            remaining=self._max_requests - 1,
            reset_in_seconds=self._window.total_seconds(),
            request_count=1,
        )


__all__ = ["AdmissionGate", "utcnow"]
