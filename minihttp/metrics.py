"""Prometheus metrics for the HTTP client."""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, Counter, Histogram, generate_latest

LOGGER = logging.getLogger(__name__)

REGISTRY = CollectorRegistry()


def _histogram(name: str, documentation: str, *, buckets: Iterable[float]) -> Histogram:
    return Histogram(name, documentation, buckets=tuple(buckets), registry=REGISTRY)


def _counter(name: str, documentation: str, *, label_names: Optional[Iterable[str]] = None) -> Counter:
    if label_names:
        return Counter(name, documentation, labelnames=list(label_names), registry=REGISTRY)
    return Counter(name, documentation, registry=REGISTRY)


REQUESTS = _counter(
    "minihttp_requests_total",
    "Number of requests grouped by outcome.",
    label_names=["outcome"],
)
REQUEST_DURATION = _histogram(
    "minihttp_request_duration_seconds",
    "Histogram of request durations in seconds.",
    buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1, 2, 5, 10, 30),
)
DNS_LOOKUPS = _counter(
    "minihttp_dns_lookups_total",
    "DNS cache lookups grouped by result.",
    label_names=["result"],
)
COOKIES_STORED = _counter(
    "minihttp_cookies_stored_total",
    "Cookies stored into client jars from Set-Cookie headers.",
)


def record_request_sent(url: str) -> None:
    LOGGER.debug("metrics.request_sent", extra={"event": "request.sent", "url": url})
    REQUESTS.labels(outcome="sent").inc()


def record_request_completed(url: str, duration: float, status: int) -> None:
    """Record a finished exchange; ``duration`` is in seconds."""

    LOGGER.debug(
        "metrics.request_completed",
        extra={"event": "request.completed", "url": url, "duration": duration, "status": status},
    )
    REQUESTS.labels(outcome="completed" if status else "degraded").inc()
    REQUEST_DURATION.observe(duration)


def record_request_failed(url: str, reason: str) -> None:
    LOGGER.debug("metrics.request_failed", extra={"event": "request.failed", "url": url, "reason": reason})
    REQUESTS.labels(outcome="failed").inc()


def record_dns_lookup(hit: bool) -> None:
    DNS_LOOKUPS.labels(result="hit" if hit else "miss").inc()


def record_cookies_stored(count: int) -> None:
    if count > 0:
        COOKIES_STORED.inc(count)


def metrics_payload() -> tuple[bytes, str]:
    """Return the Prometheus exposition payload and its content type."""

    return generate_latest(REGISTRY), CONTENT_TYPE_LATEST


__all__ = [
    "REGISTRY",
    "metrics_payload",
    "record_cookies_stored",
    "record_dns_lookup",
    "record_request_completed",
    "record_request_failed",
    "record_request_sent",
]
