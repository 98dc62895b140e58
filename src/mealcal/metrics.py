"""Prometheus metrics definitions for Mealcal."""

from __future__ import annotations

from prometheus_client import Counter, Histogram

REQUEST_COUNT = Counter(
    "mealcal_http_requests_total",
    "Total number of HTTP requests processed by the Mealcal API",
    ["method", "path", "status"],
)

REQUEST_LATENCY = Histogram(
    "mealcal_http_request_duration_seconds",
    "Latency of HTTP requests processed by the Mealcal API",
    ["method", "path"],
)

LAST_EATEN_WRITES = Counter(
    "mealcal_last_eaten_writes_total",
    "Number of last-eaten updates attempted by outcome",
    ["outcome"],
)

RECOMPUTE_RUNS = Counter(
    "mealcal_last_eaten_recomputes_total",
    "Number of last-eaten recomputations by outcome and data source",
    ["outcome", "source"],
)

__all__ = [
    "REQUEST_COUNT",
    "REQUEST_LATENCY",
    "LAST_EATEN_WRITES",
    "RECOMPUTE_RUNS",
]
