"""Prometheus metrics instrumentation."""

from __future__ import annotations

from fastapi import Response
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

REGISTRY = CollectorRegistry()

REQUEST_COUNT = Counter(
    "repochat_requests_total",
    "Total HTTP requests",
    labelnames=("endpoint", "method", "status"),
    registry=REGISTRY,
)

REQUEST_LATENCY = Histogram(
    "repochat_request_latency_seconds",
    "Latency of HTTP requests until response headers are sent",
    labelnames=("endpoint", "method"),
    registry=REGISTRY,
)

INGEST_DURATION = Histogram(
    "repochat_ingest_duration_seconds",
    "Repository ingest duration",
    labelnames=("status",),
    registry=REGISTRY,
)

CHUNKS_UPSERTED = Counter(
    "repochat_chunks_upserted_total",
    "Chunks written to the vector index",
    registry=REGISTRY,
)

GATHERER_FAILURES = Counter(
    "repochat_gatherer_failures_total",
    "Context gatherer branches that failed and fell back to a placeholder",
    labelnames=("gatherer",),
    registry=REGISTRY,
)

STREAMED_FRAGMENTS = Counter(
    "repochat_streamed_fragments_total",
    "Text fragments relayed to chat clients",
    registry=REGISTRY,
)


def metrics_response() -> Response:
    """Return Prometheus metrics as an HTTP response."""
    payload = generate_latest(REGISTRY)
    return Response(content=payload, media_type=CONTENT_TYPE_LATEST)


__all__ = [
    "REGISTRY",
    "REQUEST_COUNT",
    "REQUEST_LATENCY",
    "INGEST_DURATION",
    "CHUNKS_UPSERTED",
    "GATHERER_FAILURES",
    "STREAMED_FRAGMENTS",
    "metrics_response",
]
