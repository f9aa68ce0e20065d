"""Prometheus metrics definitions and helpers."""

from __future__ import annotations

from prometheus_client import Counter, Histogram

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests processed",
    ("method", "route", "status"),
)

REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ("method", "route"),
    buckets=(
        0.05,
        0.1,
        0.25,
        0.5,
        1.0,
        2.5,
        5.0,
        10.0,
        30.0,
        60.0,
        120.0,
    ),
)

ERROR_COUNTER = Counter(
    "app_internal_errors_total",
    "Number of requests ending in internal server error responses",
    ("method", "route"),
)

MODEL_ATTEMPTS = Counter(
    "analysis_model_attempts_total",
    "Generative model invocations per candidate and outcome",
    ("model", "outcome"),
)

ANALYSIS_RESULTS = Counter(
    "analysis_results_total",
    "Finished analysis requests by outcome (success or error kind)",
    ("outcome",),
)

ADMISSION_REJECTIONS = Counter(
    "analysis_admission_rejections_total",
    "Requests rejected by the per-actor rate limiter",
    ("endpoint",),
)


def observe_request(
    method: str,
    route: str,
    status_code: int,
    duration_seconds: float,
) -> None:
    """Record metrics for a completed HTTP request."""

    safe_route = route or "unknown"
    safe_method = method or "UNKNOWN"
    status_label = str(status_code)
    observed_duration = duration_seconds if duration_seconds >= 0 else 0

    REQUEST_COUNT.labels(
        method=safe_method,
        route=safe_route,
        status=status_label,
    ).inc()
    REQUEST_LATENCY.labels(
        method=safe_method,
        route=safe_route,
    ).observe(observed_duration)

    if status_code >= 500:
        ERROR_COUNTER.labels(
            method=safe_method,
            route=safe_route,
        ).inc()


def record_model_attempt(model_id: str, outcome: str) -> None:
    MODEL_ATTEMPTS.labels(model=model_id or "unknown", outcome=outcome).inc()


def record_analysis_result(outcome: str) -> None:
    ANALYSIS_RESULTS.labels(outcome=outcome).inc()


def record_admission_rejection(endpoint: str) -> None:
    ADMISSION_REJECTIONS.labels(endpoint=endpoint or "unknown").inc()
