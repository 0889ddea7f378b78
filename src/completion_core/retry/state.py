"""
Per-operation retry bookkeeping.

A RetryState lives for exactly one RetryExecutor.execute() call.
"""

from dataclasses import dataclass

from completion_core.retry.policy import RetryPolicy


@dataclass
class RetryState:
    """
    Attempt counter and current backoff delay.

    Attributes:
        policy: Policy bounding attempts and delays
        attempt: Attempts started so far
        delay: Delay applied after the latest failure (0 before any failure)
    """

    policy: RetryPolicy
    attempt: int = 0
    delay: float = 0.0

    @property
    def exhausted(self) -> bool:
        return self.attempt >= self.policy.max_attempts

    def start_attempt(self) -> int:
        self.attempt += 1
        return self.attempt

    def next_delay(self) -> float:
        """Delay to wait after the current attempt failed."""
        self.delay = self.policy.delay_for(self.attempt)
        return self.delay
