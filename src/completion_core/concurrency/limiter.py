"""
Bounded-parallelism admission queue for outbound provider calls.

Operations wait in FIFO order for one of `concurrency` slots. Admission is
first-come first-served; completion order is whatever the operations
produce. An optional timeout, counted from admission, cancels a slow
operation and frees its slot for the next waiter.
"""

import asyncio
from typing import Awaitable, Callable, Optional, TypeVar

import structlog

from completion_core.exceptions import ConfigurationError, InvocationTimeoutError
from completion_core.monitoring.metrics import limiter_in_flight, limiter_timeouts_total

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class ConcurrencyLimiter:
    """
    FIFO admission queue bounding simultaneously running operations.

    Attributes:
        concurrency: Maximum admitted operations (None = unbounded)
        timeout: Default per-operation timeout in seconds (None = no timeout)
    """

    def __init__(self, concurrency: Optional[int] = None, timeout: Optional[float] = None):
        """
        Initialize limiter.

        Args:
            concurrency: Slot count, at least 1. None disables the bound.
            timeout: Default timeout applied by submit()

        Raises:
            ConfigurationError: concurrency below 1 or non-positive timeout
        """
        if concurrency is not None and concurrency < 1:
            raise ConfigurationError(
                f"concurrency must be >= 1, got {concurrency}",
                details={"concurrency": concurrency},
            )
        if timeout is not None and timeout <= 0:
            raise ConfigurationError(
                f"timeout must be > 0, got {timeout}",
                details={"timeout": timeout},
            )
        self.concurrency = concurrency
        self.timeout = timeout
        # asyncio.Semaphore wakes waiters in FIFO order
        self._semaphore = asyncio.Semaphore(concurrency) if concurrency is not None else None
        self._in_flight = 0
        self._pending = 0

    @property
    def in_flight(self) -> int:
        """Operations currently admitted and running."""
        return self._in_flight

    @property
    def pending(self) -> int:
        """Operations waiting for admission."""
        return self._pending

    async def submit(
        self,
        operation: Callable[[], Awaitable[T]],
        *,
        timeout: Optional[float] = None,
    ) -> T:
        """
        Run an operation once a slot is free.

        Args:
            operation: Zero-argument coroutine factory; called after admission
            timeout: Overrides the limiter default for this operation

        Returns:
            Whatever the operation returns

        Raises:
            InvocationTimeoutError: Operation overran its timeout
            Exception: Anything the operation raises, unchanged
        """
        effective_timeout = timeout if timeout is not None else self.timeout

        self._pending += 1
        try:
            if self._semaphore is not None:
                await self._semaphore.acquire()
        finally:
            self._pending -= 1

        self._in_flight += 1
        limiter_in_flight.inc()
        try:
            try:
                async with asyncio.timeout(effective_timeout) as scope:
                    return await operation()
            except TimeoutError as e:
                if not scope.expired():
                    raise
                limiter_timeouts_total.inc()
                logger.warning(
                    "Operation cancelled by limiter timeout",
                    timeout=effective_timeout,
                    in_flight=self._in_flight,
                    pending=self._pending,
                )
                raise InvocationTimeoutError(
                    f"Operation timed out after {effective_timeout}s",
                    details={"timeout": effective_timeout},
                ) from e
        finally:
            self._in_flight -= 1
            limiter_in_flight.dec()
            if self._semaphore is not None:
                self._semaphore.release()

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"concurrency={self.concurrency}, "
            f"in_flight={self._in_flight}, pending={self._pending})"
        )
