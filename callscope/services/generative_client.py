"""Thin Gemini client wrapper for audio call analysis."""

from __future__ import annotations

import logging
from typing import Any, Optional

import google.generativeai as genai
from fastapi.concurrency import run_in_threadpool

from callscope.application.interfaces import GenerativeBackend
from callscope.config.settings import settings
from callscope.pipelines.analysis.types import DecodingParams, NormalizedAudio

logger = logging.getLogger(__name__)


class LlmInvocationError(RuntimeError):
    """Raised when a Gemini invocation fails."""


class GeminiBackend(GenerativeBackend):
    """Invoke Gemini models with the prompt and the inline audio payload."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        *,
        request_timeout: float | None = None,
    ) -> None:
        if api_key is None and settings.gemini.api_key is not None:
            api_key = settings.gemini.api_key.get_secret_value()
        self._configured = bool(api_key)
        if self._configured:
            genai.configure(api_key=api_key)
        else:
            logger.warning("Gemini API key is not configured; analysis calls will fail.")
        self._request_timeout = request_timeout or settings.gemini.timeout_seconds

    async def generate(
        self,
        model_id: str,
        prompt: str,
        audio: NormalizedAudio,
        decoding: DecodingParams,
    ) -> str:
        """Run one ``generate_content`` call and return the aggregate text output."""

        if not self._configured:
            raise LlmInvocationError("Gemini API key is not configured.")

        generation_config: dict[str, Any] = {
            "temperature": decoding.temperature,
            "top_k": decoding.top_k,
            "response_mime_type": decoding.response_mime_type,
        }

        def _call() -> str:
            model = genai.GenerativeModel(
                model_name=model_id,
                generation_config=generation_config,
            )
            response = model.generate_content(
                [prompt, {"mime_type": audio.mime_type, "data": audio.data}],
                request_options={"timeout": self._request_timeout},
            )
            return (response.text or "").strip()

        try:
            return await run_in_threadpool(_call)
        except Exception as exc:  # pragma: no cover - external dependency
            raise LlmInvocationError(f"{model_id}: {exc}") from exc


__all__ = ["GeminiBackend", "LlmInvocationError"]
