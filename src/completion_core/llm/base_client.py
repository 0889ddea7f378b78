"""
Completion executor interface.

An executor performs exactly one provider request per execute() call and
returns the provider's response body. Retrying, batching and caching live
above it. Decorating executors (request tracking) wrap any concrete
executor.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

import structlog

from completion_core.streaming.reconstructor import TokenCallback


logger = structlog.get_logger(__name__)


class CompletionExecutor(ABC):
    """
    Abstract base class for completion executors.

    Responsibilities:
    - Send one request payload to the provider
    - Translate transport failures into TransportError
    - For streaming payloads, reassemble the stream into the same response
      shape as a non-streaming call

    Does NOT handle:
    - Retry (that's RetryExecutor's job)
    - Concurrency limits (that's ConcurrencyLimiter's job)
    - Batching and result grouping (that's the provider adapter's job)
    """

    @abstractmethod
    async def execute(
        self,
        request: dict[str, Any],
        *,
        on_token: Optional[TokenCallback] = None,
    ) -> dict[str, Any]:
        """
        Execute one completion request.

        Args:
            request: Provider wire payload
            on_token: Called with each text fragment of a streamed response

        Returns:
            Response body with "choices" and optional "usage"

        Raises:
            TransportError: Network failure, non-2xx response, malformed body
        """

    async def close(self) -> None:
        """
        Release connections held by the executor.

        Default implementation does nothing.
        """
        logger.debug("Closing completion executor", executor_class=self.__class__.__name__)
