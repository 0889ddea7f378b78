"""
Retry policy: attempt bound, backoff schedule and retryable-error predicate.

The predicate is explicit so that non-transient failures (bad request,
invalid key, configuration mistakes) are surfaced at once instead of being
retried until the attempt budget runs out.
"""

from dataclasses import dataclass, field
from typing import Callable

from completion_core.exceptions import ConfigurationError, TransportError

RetryPredicate = Callable[[BaseException], bool]


def is_transient_error(error: BaseException) -> bool:
    """
    Default predicate: retry transport failures that may succeed next time.

    Network errors, broken streams, 408/409/429 and 5xx responses qualify.
    Other 4xx responses, configuration errors and any non-transport
    exception do not.
    """
    return isinstance(error, TransportError) and error.retryable


def retry_all_errors(error: BaseException) -> bool:
    """Predicate retrying every exception. Configuration errors excepted."""
    return not isinstance(error, ConfigurationError)


@dataclass(frozen=True)
class RetryPolicy:
    """
    Exponential backoff configuration for one retried operation.

    Attributes:
        max_attempts: Total attempts, the first one included
        starting_delay: Delay before the second attempt (seconds)
        max_delay: Upper bound for any delay (seconds)
        multiplier: Growth factor applied after each failed attempt
        is_retryable: Decides whether a raised error is worth another attempt
    """

    max_attempts: int = 6
    starting_delay: float = 4.0
    max_delay: float = 10.0
    multiplier: float = 2.0
    is_retryable: RetryPredicate = field(default=is_transient_error)

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ConfigurationError(
                f"max_attempts must be >= 1, got {self.max_attempts}",
                details={"max_attempts": self.max_attempts},
            )
        if self.starting_delay < 0 or self.max_delay < 0:
            raise ConfigurationError("Retry delays must be >= 0")
        if self.multiplier < 1:
            raise ConfigurationError(
                f"multiplier must be >= 1, got {self.multiplier}",
                details={"multiplier": self.multiplier},
            )

    def delay_for(self, attempt: int) -> float:
        """Delay to wait after the given failed attempt (1-indexed)."""
        return min(self.max_delay, self.starting_delay * self.multiplier ** (attempt - 1))
