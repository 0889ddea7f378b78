"""Concurrency control for outbound provider calls."""

from completion_core.concurrency.limiter import ConcurrencyLimiter

__all__ = ["ConcurrencyLimiter"]
