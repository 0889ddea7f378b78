"""
OpenAI completions executor.

Communicates with the OpenAI-compatible completions endpoint using httpx
AsyncClient. Supports:
- Batched prompts in one request
- Server-sent-event streaming, reassembled into a single choice
- Connection pooling via a persistent client
- Endpoint overrides (base URL, organization, extra headers)
"""

import json
import time
from typing import Any, Optional

import httpx
import structlog

from completion_core.exceptions import TransportError
from completion_core.llm.base_client import CompletionExecutor
from completion_core.monitoring.metrics import llm_latency_seconds, llm_tokens_total
from completion_core.streaming.reconstructor import StreamReconstructor, TokenCallback
from completion_core.streaming.sse import aiter_events


logger = structlog.get_logger(__name__)

DEFAULT_BASE_URL = "https://api.openai.com/v1"


class OpenAIClient(CompletionExecutor):
    """
    OpenAI executor using httpx for async HTTP communication.

    API Endpoints:
    - POST /completions: text completion, streamed when payload["stream"] is true

    Response (non-stream):
    {
        "id": "cmpl-...",
        "choices": [{"text": "...", "index": 0, "logprobs": null, "finish_reason": "stop"}],
        "usage": {"prompt_tokens": 5, "completion_tokens": 7, "total_tokens": 12}
    }

    Stream: "data: {choices: [...]}" events terminated by "data: [DONE]".
    """

    COMPLETIONS_PATH = "/completions"

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        organization: Optional[str] = None,
        timeout: float = 60.0,
        connection_limits: Optional[httpx.Limits] = None,
        headers: Optional[dict[str, str]] = None,
    ):
        """
        Initialize OpenAI client.

        Args:
            api_key: Provider API key
            base_url: API root, e.g. https://api.openai.com/v1
            organization: Optional OpenAI-Organization header value
            timeout: Per-request timeout in seconds
            connection_limits: httpx connection pool limits (default: 20 max connections)
            headers: Extra headers sent with every request
        """
        self.base_url = base_url.rstrip("/")
        self.organization = organization
        self.timeout = timeout
        self._api_key = api_key
        self._extra_headers = dict(headers or {})

        if connection_limits is None:
            connection_limits = httpx.Limits(
                max_keepalive_connections=10,
                max_connections=20,
                keepalive_expiry=30.0,
            )
        self._connection_limits = connection_limits
        self._client: Optional[httpx.AsyncClient] = None

        logger.info(
            "OpenAI client initialized",
            base_url=self.base_url,
            timeout=timeout,
            organization=organization,
        )

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the async HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=self._build_headers(),
                timeout=httpx.Timeout(self.timeout, connect=10.0),
                limits=self._connection_limits,
            )
            logger.debug("Created new httpx AsyncClient")
        return self._client

    def _build_headers(self) -> dict[str, str]:
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }
        if self.organization:
            headers["OpenAI-Organization"] = self.organization
        headers.update(self._extra_headers)
        return headers

    async def execute(
        self,
        request: dict[str, Any],
        *,
        on_token: Optional[TokenCallback] = None,
    ) -> dict[str, Any]:
        model = str(request.get("model", "unknown"))
        streaming = bool(request.get("stream"))
        start_time = time.monotonic()

        logger.debug(
            "Sending completion request",
            model=model,
            prompts=len(request.get("prompt") or []),
            stream=streaming,
        )

        try:
            if streaming:
                response_data = await self._execute_stream(request, on_token)
            else:
                response_data = await self._execute_once(request)
        except TransportError as e:
            llm_latency_seconds.labels(model=model, success="false").observe(
                time.monotonic() - start_time
            )
            logger.warning(
                "Completion request failed",
                model=model,
                status_code=e.status_code,
                error=e.message,
            )
            raise

        latency = time.monotonic() - start_time
        llm_latency_seconds.labels(model=model, success="true").observe(latency)
        self._record_usage(model, response_data.get("usage"))

        logger.info(
            "Completion request successful",
            model=model,
            latency_ms=int(latency * 1000),
            choices=len(response_data.get("choices") or []),
            stream=streaming,
        )
        return response_data

    async def _execute_once(self, request: dict[str, Any]) -> dict[str, Any]:
        client = await self._get_client()
        try:
            response = await client.post(self.COMPLETIONS_PATH, json=request)
        except httpx.TimeoutException as e:
            raise TransportError(
                f"Request timeout after {self.timeout}s",
                details={"timeout": self.timeout, "error_type": type(e).__name__},
            ) from e
        except httpx.HTTPError as e:
            raise TransportError(
                f"Network error: {e}",
                details={"error_type": type(e).__name__},
            ) from e

        if response.is_error:
            raise self._status_error(response)

        try:
            body = response.json()
        except json.JSONDecodeError as e:
            raise TransportError(
                "Invalid JSON response from provider",
                status_code=response.status_code,
                details={"parse_error": str(e), "body": response.text[:500]},
                retryable=True,
            ) from e

        choices = body.get("choices") if isinstance(body, dict) else None
        if not isinstance(choices, list) or not all(isinstance(c, dict) for c in choices):
            raise TransportError(
                "Provider response is not a completion object",
                status_code=response.status_code,
                details={"body": response.text[:500]},
                retryable=True,
            )
        return body

    async def _execute_stream(
        self,
        request: dict[str, Any],
        on_token: Optional[TokenCallback],
    ) -> dict[str, Any]:
        reconstructor = StreamReconstructor(on_token=on_token)
        client = await self._get_client()
        try:
            async with client.stream("POST", self.COMPLETIONS_PATH, json=request) as response:
                if response.is_error:
                    await response.aread()
                    raise self._status_error(response)
                await reconstructor.consume(aiter_events(response.aiter_lines()))
        except httpx.TimeoutException as e:
            raise TransportError(
                f"Stream timeout after {self.timeout}s",
                details={"timeout": self.timeout, "error_type": type(e).__name__},
            ) from e
        except httpx.HTTPError as e:
            raise TransportError(
                f"Stream interrupted: {e}",
                details={
                    "error_type": type(e).__name__,
                    "received_chars": len(reconstructor.accumulator.text),
                },
            ) from e

        return {
            "choices": [reconstructor.to_choice()],
            "usage": reconstructor.accumulator.usage,
        }

    @staticmethod
    def _status_error(response: httpx.Response) -> TransportError:
        """Translate a non-2xx response into a TransportError."""
        status_code = response.status_code
        try:
            body: Any = response.json()
        except ValueError:
            body = response.text[:500]

        message = None
        if isinstance(body, dict) and isinstance(body.get("error"), dict):
            message = body["error"].get("message")

        return TransportError(
            f"Provider returned HTTP {status_code}: {message or response.reason_phrase}",
            status_code=status_code,
            details={"status": status_code, "body": body},
        )

    @staticmethod
    def _record_usage(model: str, usage: Optional[dict[str, Any]]) -> None:
        if not usage:
            return
        if usage.get("prompt_tokens"):
            llm_tokens_total.labels(model=model, token_type="prompt").inc(usage["prompt_tokens"])
        if usage.get("completion_tokens"):
            llm_tokens_total.labels(model=model, token_type="completion").inc(
                usage["completion_tokens"]
            )

    async def close(self) -> None:
        """Close the HTTP client connection."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            logger.debug("Closed OpenAI client connection")

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"base_url={self.base_url}, "
            f"timeout={self.timeout}s)"
        )
