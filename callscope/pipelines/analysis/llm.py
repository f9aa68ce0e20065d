"""Model invocation stage for the analysis pipeline (Stage 05).

Candidates are tried in their configured order, each at most once. The first
non-empty answer wins; every attempt is recorded so the full history can be
audited when all of them fail. A wall-clock ceiling bounds the whole loop.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable, List, Sequence

from callscope.application.interfaces import GenerativeBackend
from callscope.telemetry import record_model_attempt

from .types import (
    ComposedPrompt,
    DecodingParams,
    InvocationAttempt,
    InvocationResult,
    NormalizedAudio,
)

logger = logging.getLogger("callscope.services.analysis_pipeline")


def _truncate(value: str, max_length: int = 500) -> str:
    if len(value) <= max_length:
        return value
    return value[: max_length - 3] + "..."


class ModelInvoker:
    """Walk the ordered candidate list until one model answers."""

    def __init__(
        self,
        backend: GenerativeBackend,
        candidate_models: Sequence[str],
        *,
        decoding: DecodingParams | None = None,
        timeout_seconds: float = 120.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._backend = backend
        self._candidates = tuple(dict.fromkeys(candidate_models))
        self._decoding = decoding or DecodingParams()
        self._timeout_seconds = timeout_seconds
        self._clock = clock

    async def invoke(self, prompt: ComposedPrompt, audio: NormalizedAudio) -> InvocationResult:
        attempts: List[InvocationAttempt] = []
        deadline = self._clock() + self._timeout_seconds

        for model_id in self._candidates:
            remaining = deadline - self._clock()
            if remaining <= 0:
                logger.warning("Tiempo agotado antes de probar model=%s", model_id)
                return InvocationResult(tuple(attempts), timed_out=True)

            logger.info("Invocando modelo model=%s intento=%s", model_id, len(attempts) + 1)
            try:
                raw_text = await asyncio.wait_for(
                    self._backend.generate(model_id, prompt.text, audio, self._decoding),
                    timeout=remaining,
                )
            except asyncio.TimeoutError as exc:
                if self._clock() >= deadline:
                    attempts.append(self._failure(model_id, "timed out"))
                    logger.warning("Modelo sin respuesta dentro del plazo model=%s", model_id)
                    return InvocationResult(tuple(attempts), timed_out=True)
                attempts.append(self._failure(model_id, str(exc) or "timed out"))
                continue
            except Exception as exc:
                attempts.append(self._failure(model_id, str(exc) or type(exc).__name__))
                continue

            if not raw_text or not raw_text.strip():
                attempts.append(self._failure(model_id, "empty response"))
                continue

            logger.info("Respuesta cruda model=%s: %s", model_id, _truncate(raw_text))
            record_model_attempt(model_id, "success")
            attempts.append(
                InvocationAttempt(model_id=model_id, outcome="success", raw_text=raw_text)
            )
            return InvocationResult(tuple(attempts))

        logger.error("Ningún modelo respondió: %s", [a.error_message for a in attempts])
        return InvocationResult(tuple(attempts))

    @staticmethod
    def _failure(model_id: str, message: str) -> InvocationAttempt:
        logger.warning("Modelo falló model=%s: %s", model_id, _truncate(message, 240))
        record_model_attempt(model_id, "failure")
        return InvocationAttempt(model_id=model_id, outcome="failure", error_message=message)


__all__ = ["ModelInvoker"]
