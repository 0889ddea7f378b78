"""Monitoring module for Prometheus metrics."""

from completion_core.monitoring.metrics import (
    cache_lookups_total,
    limiter_in_flight,
    limiter_timeouts_total,
    llm_latency_seconds,
    llm_tokens_total,
    retries_total,
    tracking_failures_total,
)

__all__ = [
    "cache_lookups_total",
    "limiter_in_flight",
    "limiter_timeouts_total",
    "llm_latency_seconds",
    "llm_tokens_total",
    "retries_total",
    "tracking_failures_total",
]
