"""Telemetry helpers and metrics."""

from .metrics import (
    ADMISSION_REJECTIONS,
    ANALYSIS_RESULTS,
    ERROR_COUNTER,
    MODEL_ATTEMPTS,
    REQUEST_COUNT,
    REQUEST_LATENCY,
    observe_request,
    record_admission_rejection,
    record_analysis_result,
    record_model_attempt,
)

__all__ = [
    "ADMISSION_REJECTIONS",
    "ANALYSIS_RESULTS",
    "ERROR_COUNTER",
    "MODEL_ATTEMPTS",
    "REQUEST_COUNT",
    "REQUEST_LATENCY",
    "observe_request",
    "record_admission_rejection",
    "record_analysis_result",
    "record_model_attempt",
]
