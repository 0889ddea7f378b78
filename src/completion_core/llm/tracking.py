"""
Request tracking side channel.

Wraps any CompletionExecutor and reports each completed non-streaming
request to a PromptLayer-compatible tracking endpoint. Reports are posted
from background tasks: a slow or failing tracking endpoint never delays or
fails the completion itself.
"""

import asyncio
import time
from typing import Any, Optional, Sequence

import httpx
import structlog

from completion_core.exceptions import ConfigurationError
from completion_core.llm.base_client import CompletionExecutor
from completion_core.monitoring.metrics import tracking_failures_total
from completion_core.streaming.reconstructor import TokenCallback


logger = structlog.get_logger(__name__)

DEFAULT_TRACKING_URL = "https://api.promptlayer.com/track-request"


class RequestTrackingExecutor(CompletionExecutor):
    """
    Executor decorator posting request/response pairs for tracking.

    Streamed requests pass through untracked.

    Usage:
        executor = RequestTrackingExecutor(OpenAIClient(api_key=...), api_key="pl_...")
        response = await executor.execute(payload)
        await executor.flush()
    """

    FUNCTION_NAME = "openai.Completion.create"

    def __init__(
        self,
        inner: CompletionExecutor,
        api_key: Optional[str],
        *,
        url: str = DEFAULT_TRACKING_URL,
        tags: Optional[Sequence[str]] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
    ):
        """
        Initialize tracking executor.

        Args:
            inner: Executor performing the actual completion requests
            api_key: Tracking service API key
            url: Tracking endpoint
            tags: Tags attached to every report
            http_client: Client for tracking posts (created lazily if None)
            timeout: Timeout for tracking posts in seconds

        Raises:
            ConfigurationError: api_key is missing
        """
        if not api_key:
            raise ConfigurationError(
                "Request tracking API key not found",
                details={"env_var": "PROMPTLAYER_API_KEY"},
            )
        self.inner = inner
        self.url = url
        self.tags = list(tags or [])
        self.timeout = timeout
        self._api_key = api_key
        self._client = http_client
        self._owns_client = http_client is None
        self._pending: set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        """Tracking posts not yet finished."""
        return len(self._pending)

    async def execute(
        self,
        request: dict[str, Any],
        *,
        on_token: Optional[TokenCallback] = None,
    ) -> dict[str, Any]:
        if request.get("stream"):
            return await self.inner.execute(request, on_token=on_token)

        request_start_time = time.time()
        response = await self.inner.execute(request, on_token=on_token)
        request_end_time = time.time()

        report = self._build_report(request, response, request_start_time, request_end_time)
        task = asyncio.create_task(self._post_report(report))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return response

    def _build_report(
        self,
        request: dict[str, Any],
        response: dict[str, Any],
        request_start_time: float,
        request_end_time: float,
    ) -> dict[str, Any]:
        return {
            "function_name": self.FUNCTION_NAME,
            "args": [],
            "kwargs": {"engine": request.get("model"), "prompt": request.get("prompt")},
            "tags": self.tags,
            "request_response": response,
            "request_start_time": int(request_start_time),
            "request_end_time": int(request_end_time),
            "api_key": self._api_key,
        }

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self.timeout)
            self._owns_client = True
        return self._client

    async def _post_report(self, report: dict[str, Any]) -> None:
        try:
            response = await self._get_client().post(self.url, json=report)
            response.raise_for_status()
        except httpx.HTTPError as e:
            tracking_failures_total.inc()
            logger.warning(
                "Request tracking post failed",
                url=self.url,
                error_type=type(e).__name__,
                error=str(e),
            )
            return

        logger.debug("Request tracked", url=self.url, engine=report["kwargs"]["engine"])

    async def flush(self) -> None:
        """Wait for all pending tracking posts."""
        if self._pending:
            await asyncio.gather(*list(self._pending))

    async def close(self) -> None:
        """Flush pending posts, then close the tracking and inner clients."""
        await self.flush()
        if self._owns_client and self._client is not None and not self._client.is_closed:
            await self._client.aclose()
        await self.inner.close()
