"""Structured request logging for the analysis API."""

from __future__ import annotations

import logging
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

logger = logging.getLogger("callscope.middleware.structured")

REQUEST_ID_HEADER = "X-Request-ID"

COLOR_RESET = "\u001b[0m"
COLOR_GREEN = "\u001b[32m"
COLOR_CYAN = "\u001b[36m"
COLOR_YELLOW = "\u001b[33m"
COLOR_RED = "\u001b[31m"


def _status_color(status: int) -> str:
    if 200 <= status < 300:
        return COLOR_GREEN
    if 400 <= status < 500:
        return COLOR_YELLOW
    if status >= 500:
        return COLOR_RED
    return COLOR_CYAN


class StructuredLoggingMiddleware(BaseHTTPMiddleware):
    """One colourised line per request, tagged with a request id and the actor.

    An incoming ``X-Request-ID`` is reused so the line can be correlated with
    the proxy logs; otherwise one is generated. The id is echoed back.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        request.state.request_id = request_id
        started = time.perf_counter()
        entry: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "request_id": request_id,
            "method": request.method,
            "url": str(request.url),
            "client_ip": request.client.host if request.client else None,
        }

        try:
            response = await call_next(request)
        except Exception as exc:
            entry.update(
                status=500,
                duration_ms=self._elapsed_ms(started),
                actor_id=self._actor_id(request),
                error=repr(exc),
            )
            logger.exception(self.format_line(entry))
            raise

        response.headers[REQUEST_ID_HEADER] = request_id
        entry.update(
            status=response.status_code,
            duration_ms=self._elapsed_ms(started),
            actor_id=self._actor_id(request),
        )
        logger.info(self.format_line(entry))
        return response

    @staticmethod
    def _elapsed_ms(started: float) -> float:
        return round((time.perf_counter() - started) * 1000, 2)

    @staticmethod
    def _actor_id(request: Request) -> Optional[str]:
        actor = getattr(request.state, "actor", None)
        return getattr(actor, "identifier", None)

    @staticmethod
    def format_line(entry: dict[str, Any]) -> str:
        fields = (
            "timestamp",
            "request_id",
            "method",
            "url",
            "client_ip",
            "actor_id",
            "status",
            "duration_ms",
            "error",
        )
        message = ", ".join(
            f"{name}={entry[name] if entry.get(name) is not None else '-'}"
            for name in fields
            if name != "error" or "error" in entry
        )
        return f"{_status_color(entry.get('status') or 0)}{message}{COLOR_RESET}"
