"""
Retry executor wrapping a single network operation.

Retry Policy:
    1. Run the operation
    2. On a retryable error, wait the current delay and try again,
       growing the delay by the policy multiplier up to max_delay
    3. On a non-retryable error, re-raise at once
    4. After max_attempts failures, re-raise the last error unchanged

Usage:
    executor = RetryExecutor(RetryPolicy(max_attempts=6))
    response = await executor.execute(lambda: client.execute(payload))
"""

import asyncio
from typing import Awaitable, Callable, Optional, TypeVar

import structlog

from completion_core.monitoring.metrics import retries_total
from completion_core.retry.policy import RetryPolicy
from completion_core.retry.state import RetryState

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class RetryExecutor:
    """
    Runs an async operation under a RetryPolicy.

    Errors are never wrapped: callers see exactly what the final attempt
    raised.

    Attributes:
        policy: Attempt bound, backoff schedule and retry predicate
    """

    def __init__(
        self,
        policy: Optional[RetryPolicy] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """
        Initialize retry executor.

        Args:
            policy: Retry policy (defaults to RetryPolicy())
            sleep: Awaitable used for backoff waits
        """
        self.policy = policy or RetryPolicy()
        self._sleep = sleep

    async def execute(
        self,
        operation: Callable[[], Awaitable[T]],
        *,
        description: str = "completion",
    ) -> T:
        """
        Execute the operation, retrying per policy.

        Args:
            operation: Zero-argument coroutine factory, called once per attempt
            description: Operation name for logs and metrics

        Returns:
            Result of the first successful attempt

        Raises:
            Exception: The non-retryable error, or the last error once
                attempts are exhausted
        """
        state = RetryState(self.policy)

        while True:
            attempt = state.start_attempt()
            try:
                result = await operation()
            except Exception as e:
                if not self.policy.is_retryable(e):
                    retries_total.labels(operation=description, outcome="not_retryable").inc()
                    logger.warning(
                        "Operation failed with non-retryable error",
                        operation=description,
                        attempt=attempt,
                        error_type=type(e).__name__,
                        error=str(e),
                    )
                    raise

                if state.exhausted:
                    retries_total.labels(operation=description, outcome="exhausted").inc()
                    logger.error(
                        "Retry attempts exhausted",
                        operation=description,
                        attempts=attempt,
                        error_type=type(e).__name__,
                        error=str(e),
                    )
                    raise

                delay = state.next_delay()
                retries_total.labels(operation=description, outcome="retried").inc()
                logger.warning(
                    "Operation failed, retrying after backoff",
                    operation=description,
                    attempt=attempt,
                    max_attempts=self.policy.max_attempts,
                    delay_seconds=delay,
                    error_type=type(e).__name__,
                    error=str(e),
                )
                await self._sleep(delay)
                continue

            if attempt > 1:
                retries_total.labels(operation=description, outcome="recovered").inc()
                logger.info(
                    "Operation recovered after retry",
                    operation=description,
                    attempts=attempt,
                )
            return result
