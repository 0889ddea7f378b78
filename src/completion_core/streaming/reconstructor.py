"""
Reassembly of a streamed completion from partial-token events.

State machine, one instance per streamed prompt:

    OPEN --delta--> ACCUMULATING --delta--> ACCUMULATING
    OPEN | ACCUMULATING --"[DONE]"--> DONE
    OPEN | ACCUMULATING --error--> FAILED

Streams are not resumable: a retried request gets a fresh reconstructor.
"""

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, AsyncIterable, Callable, NoReturn, Optional

import structlog

from completion_core.exceptions import StreamError
from completion_core.models.llm_models import Generation
from completion_core.streaming.sse import ServerSentEvent

logger = structlog.get_logger(__name__)

DONE_SENTINEL = "[DONE]"

TokenCallback = Callable[[str], None]


class StreamState(str, Enum):
    """Lifecycle of one streamed completion."""

    OPEN = "open"
    ACCUMULATING = "accumulating"
    DONE = "done"
    FAILED = "failed"


@dataclass
class StreamAccumulator:
    """Transient per-prompt state mutated by every delta event."""

    text: str = ""
    finish_reason: Optional[str] = None
    logprobs: Any = None
    usage: Optional[dict[str, Any]] = None

    def to_generation(self) -> Generation:
        return Generation(text=self.text, finish_reason=self.finish_reason, logprobs=self.logprobs)


class StreamReconstructor:
    """
    Consumes delta events and produces one aggregated completion.

    Each text fragment is also handed to `on_token` as it arrives; the
    callback is a side channel and cannot affect the result.
    """

    def __init__(self, on_token: Optional[TokenCallback] = None):
        self.state = StreamState.OPEN
        self.accumulator = StreamAccumulator()
        self.error: Optional[BaseException] = None
        self._on_token = on_token

    @property
    def finished(self) -> bool:
        return self.state in (StreamState.DONE, StreamState.FAILED)

    def feed(self, data: str) -> StreamState:
        """
        Apply one event payload.

        Args:
            data: The event's data field, a JSON object or the sentinel

        Returns:
            State after the event

        Raises:
            StreamError: Payload is not valid JSON or not a completion chunk
        """
        if self.finished:
            logger.debug("Ignoring event after stream finished", state=self.state.value)
            return self.state

        if data == DONE_SENTINEL:
            self.state = StreamState.DONE
            return self.state

        try:
            payload = json.loads(data)
        except json.JSONDecodeError as e:
            error = StreamError(
                "Malformed stream payload",
                details={"data": data[:200], "parse_error": str(e)},
            )
            self.fail(error)
            raise error from e

        if not isinstance(payload, dict):
            self._reject("Stream payload is not a JSON object", data)

        if payload.get("usage"):
            self.accumulator.usage = payload["usage"]

        choices = payload.get("choices") or []
        if not isinstance(choices, list):
            self._reject("Stream payload choices is not a list", data)
        if not choices:
            return self.state

        part = choices[0]
        if not isinstance(part, dict):
            self._reject("Stream choice is not a JSON object", data)
        fragment = part.get("text") or ""
        if not isinstance(fragment, str):
            self._reject("Stream choice text is not a string", data)
        self.accumulator.text += fragment
        self.accumulator.finish_reason = part.get("finish_reason")
        self.accumulator.logprobs = part.get("logprobs")
        self.state = StreamState.ACCUMULATING
        self._notify(fragment)
        return self.state

    def fail(self, error: BaseException) -> None:
        """Move to FAILED, keeping the error that caused it."""
        self.state = StreamState.FAILED
        self.error = error

    def _reject(self, message: str, data: str) -> NoReturn:
        error = StreamError(message, details={"data": data[:200]})
        self.fail(error)
        raise error

    async def consume(self, events: AsyncIterable[ServerSentEvent]) -> Generation:
        """
        Drive the state machine from an event source until the sentinel.

        Returns:
            The accumulated Generation

        Raises:
            StreamError: Malformed payload, or the source ended before "[DONE]"
            Exception: Transport errors raised by the source, unchanged
        """
        try:
            async for event in events:
                if not event.data:
                    continue
                self.feed(event.data)
                if self.state is StreamState.DONE:
                    break
        except Exception as e:
            if self.state is not StreamState.FAILED:
                self.fail(e)
            raise

        if self.state is not StreamState.DONE:
            error = StreamError(
                f"Stream ended before {DONE_SENTINEL} sentinel",
                details={"received_chars": len(self.accumulator.text)},
            )
            self.fail(error)
            raise error

        return self.result()

    def result(self) -> Generation:
        if self.state is not StreamState.DONE:
            raise StreamError(
                "Stream has not completed",
                details={"state": self.state.value},
            )
        return self.accumulator.to_generation()

    def to_choice(self) -> dict[str, Any]:
        """Accumulated state in the provider's non-streaming choice shape."""
        return {
            "text": self.accumulator.text,
            "index": 0,
            "finish_reason": self.accumulator.finish_reason,
            "logprobs": self.accumulator.logprobs,
        }

    def _notify(self, fragment: str) -> None:
        if self._on_token is None:
            return
        try:
            self._on_token(fragment)
        except Exception as e:
            logger.warning(
                "Token callback failed",
                error_type=type(e).__name__,
                error=str(e),
            )
