"""Terminal error taxonomy of the analysis pipeline."""

from __future__ import annotations

from typing import Any, Mapping, Sequence


class AnalysisError(RuntimeError):
    """Base class: a stable machine-readable ``kind`` plus a human message.

    ``detail`` carries operator-facing diagnostics (per-candidate errors,
    unparsed model output) and is not meant for end users.
    """

    kind = "analysis_error"
    status_code = 500

    def __init__(self, message: str, *, detail: Mapping[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.detail: dict[str, Any] = dict(detail or {})


class AdmissionRejected(AnalysisError):
    kind = "admission_rejected"
    status_code = 429

    def __init__(self, identifier: str, retry_after: float) -> None:
        super().__init__(
            "Too many requests. Please try again later.",
            detail={"identifier": identifier, "retry_after": retry_after},
        )
        self.retry_after = retry_after


class OversizedInput(AnalysisError):
    kind = "oversized_input"
    status_code = 413

    def __init__(self, size_bytes: int, max_bytes: int) -> None:
        size_mb = size_bytes / (1024 * 1024)
        max_mb = max_bytes / (1024 * 1024)
        super().__init__(
            f"Audio file too large ({size_mb:.1f}MB). Maximum size is {max_mb:.0f}MB.",
            detail={"size_bytes": size_bytes, "max_bytes": max_bytes},
        )
        self.size_bytes = size_bytes
        self.max_bytes = max_bytes


class AllCandidatesFailed(AnalysisError):
    kind = "all_candidates_failed"
    status_code = 502

    def __init__(self, errors: Sequence[str]) -> None:
        super().__init__(
            "No analysis model is currently available. Please try again later.",
            detail={"errors": list(errors)},
        )
        self.errors = tuple(errors)


class MalformedModelOutput(AnalysisError):
    kind = "malformed_model_output"
    status_code = 502

    def __init__(self, raw_text: str, model_id: str | None = None) -> None:
        super().__init__(
            "The analysis model returned an unreadable response.",
            detail={"raw_text": raw_text, "model_id": model_id},
        )
        self.raw_text = raw_text
        self.model_id = model_id


class InvocationTimedOut(AnalysisError):
    kind = "invocation_timed_out"
    status_code = 504

    def __init__(self, timeout_seconds: float, errors: Sequence[str] = ()) -> None:
        super().__init__(
            f"Analysis did not finish within {timeout_seconds:.0f} seconds.",
            detail={"timeout_seconds": timeout_seconds, "errors": list(errors)},
        )
        self.timeout_seconds = timeout_seconds


class PersistenceFailed(AnalysisError):
    kind = "persistence_failed"
    status_code = 500

    def __init__(self, reason: str) -> None:
        super().__init__(
            "The analysis could not be saved.",
            detail={"reason": reason},
        )


__all__ = [
    "AdmissionRejected",
    "AllCandidatesFailed",
    "AnalysisError",
    "InvocationTimedOut",
    "MalformedModelOutput",
    "OversizedInput",
    "PersistenceFailed",
]
