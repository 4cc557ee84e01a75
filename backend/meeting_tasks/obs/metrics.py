from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Any, Callable

from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

HTTP_REQUESTS = Counter("http_requests_total", "HTTP requests", ["path", "method", "status"])

HTTP_LATENCY = Histogram(
    "http_request_duration_seconds",
    "Latencies for HTTP requests",
    ["path", "method"],
)

AUTH_EVENTS = Counter("auth_events_total", "Identity operations (action/outcome)", ["action", "outcome"])

PROFILE_SAVES = Counter("profile_saves_total", "Profile saves (by outcome)", ["outcome"])

SUBMISSIONS = Counter(
    "transcript_submissions_total",
    "Transcript submissions (by outcome)",
    ["outcome"],
)

WEBHOOK_LATENCY = Histogram(
    "webhook_post_duration_seconds",
    "Outbound webhook POST durations",
    ["mode"],
    buckets=(0.05, 0.1, 0.25, 0.5, 1, 2, 5, 10, 30),
)


@contextmanager
def track_http_request(
    path: str,
    method: str,
    status_getter: Callable[[], int],
) -> Any:
    start = time.perf_counter()
    try:
        yield
    finally:
        duration = time.perf_counter() - start
        HTTP_REQUESTS.labels(path=path, method=method, status=str(status_getter())).inc()
        HTTP_LATENCY.labels(path=path, method=method).observe(duration)


def render_prometheus() -> tuple[bytes, str]:
    """Return (body, content type) for the scrape endpoint."""
    return generate_latest(), CONTENT_TYPE_LATEST
