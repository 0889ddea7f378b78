"""Prometheus metrics for the completion invocation core.

Metrics are registered in the default prometheus_client registry; the
embedding application decides whether and where to expose them.
Alert rules worth configuring:
- retries_total{outcome="exhausted"} (provider instability)
- limiter_timeouts_total (timeouts too tight or provider too slow)
- cache_lookups_total (hit ratio drop after a parameter change)
"""

from prometheus_client import Counter, Gauge, Histogram

# === Provider Request Metrics ===

llm_latency_seconds = Histogram(
    "llm_latency_seconds",
    "Completion request latency in seconds",
    ["model", "success"],
    buckets=[0.25, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0, 120.0],
)
"""
Latency of one provider request (one sub-batch, one attempt).

Labels:
- model: Model name sent to the provider
- success: true / false
"""

llm_tokens_total = Counter(
    "llm_tokens_total",
    "Total tokens reported by the provider",
    ["model", "token_type"],
)
"""
Token consumption as reported in provider usage blocks.

Labels:
- token_type: prompt, completion
"""

# === Retry Metrics ===

retries_total = Counter(
    "retries_total",
    "Retry decisions by outcome",
    ["operation", "outcome"],
)
"""
Labels:
- operation: description passed to the retry executor
- outcome: retried, recovered, exhausted, not_retryable
"""

# === Cache Metrics ===

cache_lookups_total = Counter(
    "cache_lookups_total",
    "Cache lookups by result",
    ["result"],
)
"""
Labels:
- result: hit, miss
"""

# === Concurrency Metrics ===

limiter_in_flight = Gauge(
    "limiter_in_flight",
    "Operations currently admitted by concurrency limiters",
)

limiter_timeouts_total = Counter(
    "limiter_timeouts_total",
    "Operations cancelled by a limiter timeout",
)

# === Request Tracking Metrics ===

tracking_failures_total = Counter(
    "tracking_failures_total",
    "Request-tracking posts that failed (never affects invocations)",
)
