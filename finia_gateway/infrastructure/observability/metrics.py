"""Prometheus metrics for message handling, classifier health and ledger writes"""

from typing import Optional

from prometheus_client import Counter, Histogram

# Inbound message metrics
message_counter = Counter(
    "finia_messages_total",
    "Inbound messages handled",
    ["route", "status"],  # route: onboarding | conversation | batch | help | restart | ...
)

# Classifier metrics
classification_counter = Counter(
    "finia_classification_total",
    "Classifications by outcome",
    ["outcome", "error_kind"],  # RESOLVED | LOW_CONFIDENCE | FAILED
)

classifier_latency_histogram = Histogram(
    "classifier_latency_seconds",
    "Time spent classifying one message (including fallback)",
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
)

# Ledger metrics
ledger_latency_histogram = Histogram(
    "ledger_append_latency_seconds",
    "Ledger append response time",
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

ledger_failure_counter = Counter(
    "ledger_append_failures_total",
    "Failed ledger appends",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_classification(outcome: str, duration_seconds: float, error_kind: Optional[str] = None) -> None:
    """Record one classification outcome and its latency"""
    classification_counter.labels(outcome=outcome, error_kind=error_kind or "none").inc()
    classifier_latency_histogram.observe(duration_seconds)


def record_message(route: str, status: str) -> None:
    message_counter.labels(route=route, status=status).inc()
