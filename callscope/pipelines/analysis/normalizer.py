"""Result normalization stage for the analysis pipeline (Stage 06).

Parses the raw model text, deep-defaults it into :class:`NormalizedAnalysis`,
removes placeholder sentences from flagged-issue arrays and records which
model produced the result.
"""

from __future__ import annotations

import json
import logging
from typing import Iterable, List

from callscope.services.response_contract import NormalizedAnalysis, clean_json_payload

from .errors import MalformedModelOutput

logger = logging.getLogger("callscope.services.analysis_pipeline")

# Models often answer "no issues" with one of these instead of [].
SENTINEL_PLACEHOLDERS = frozenset(
    {
        "none",
        "none detected",
        "none detected.",
        "n/a",
        "no red flags",
        "no red flags detected",
        "no red flags detected.",
    }
)


def _truncate(value: str, max_length: int = 500) -> str:
    if len(value) <= max_length:
        return value
    return value[: max_length - 3] + "..."


def filter_sentinels(values: Iterable[str]) -> List[str]:
    """Drop blank and placeholder entries, keeping the rest in order."""

    kept = []
    for value in values:
        cleaned = value.strip()
        if not cleaned or cleaned.lower() in SENTINEL_PLACEHOLDERS:
            continue
        kept.append(value)
    return kept


def normalize_result(raw_text: str, model_id: str | None = None) -> NormalizedAnalysis:
    """Turn raw model output into a schema-complete analysis."""

    cleaned = clean_json_payload(raw_text)
    # Oversized integer literals raise a plain ValueError, not JSONDecodeError.
    try:
        data = json.loads(cleaned)
    except ValueError as exc:
        logger.warning(
            "Respuesta del modelo no es JSON model=%s: %s | raw=%s",
            model_id,
            exc,
            _truncate(raw_text or ""),
        )
        raise MalformedModelOutput(raw_text, model_id) from exc

    if not isinstance(data, dict):
        logger.warning(
            "Respuesta del modelo no es un objeto model=%s tipo=%s",
            model_id,
            type(data).__name__,
        )
        raise MalformedModelOutput(raw_text, model_id)

    analysis = NormalizedAnalysis.model_validate(data)

    coaching = analysis.coaching
    coaching.red_flags = filter_sentinels(coaching.red_flags)
    coaching.missed_opportunities = filter_sentinels(coaching.missed_opportunities)
    coaching.forced_sale.indicators = filter_sentinels(coaching.forced_sale.indicators)

    analysis.model_used = model_id
    logger.info(
        "Análisis normalizado model=%s score=%s red_flags=%s",
        model_id,
        coaching.overall_score,
        len(coaching.red_flags),
    )
    return analysis


__all__ = ["SENTINEL_PLACEHOLDERS", "filter_sentinels", "normalize_result"]
