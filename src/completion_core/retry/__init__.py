"""
Retry executor with exponential backoff.

A failed provider call is retried while the policy's predicate accepts the
error and the attempt budget lasts; the last error is then surfaced as-is.

Main Components:
    - RetryExecutor: runs one operation under a policy
    - RetryPolicy: attempts, delays, growth factor, retryable predicate
    - RetryState: per-operation attempt/delay bookkeeping
    - is_transient_error / retry_all_errors: stock predicates

Usage:
    >>> from completion_core.retry import RetryExecutor, RetryPolicy
    >>> executor = RetryExecutor(RetryPolicy(max_attempts=3))
    >>> response = await executor.execute(lambda: client.execute(payload))
"""

from completion_core.retry.executor import RetryExecutor
from completion_core.retry.policy import (
    RetryPolicy,
    RetryPredicate,
    is_transient_error,
    retry_all_errors,
)
from completion_core.retry.state import RetryState

__all__ = [
    "RetryExecutor",
    "RetryPolicy",
    "RetryPredicate",
    "RetryState",
    "is_transient_error",
    "retry_all_errors",
]
