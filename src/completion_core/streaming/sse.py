"""
Server-sent-event decoding.

Implements the event-stream line rules:
- lines starting with ":" are comments
- "field: value" lines, with one optional space after the colon
- several "data" lines in one event are joined with "\n"
- a blank line dispatches the buffered event
"""

from dataclasses import dataclass
from typing import AsyncIterable, AsyncIterator, Optional


@dataclass(frozen=True)
class ServerSentEvent:
    """One dispatched event."""

    event: str = "message"
    data: str = ""
    id: Optional[str] = None
    retry: Optional[int] = None


class SSEDecoder:
    """Incremental, line-oriented event-stream decoder."""

    def __init__(self) -> None:
        self._event = ""
        self._data: list[str] = []
        self._last_event_id: Optional[str] = None
        self._retry: Optional[int] = None

    def decode(self, line: str) -> Optional[ServerSentEvent]:
        """
        Feed one line (without its terminator).

        Returns:
            The dispatched event when the line completes one, else None
        """
        line = line.rstrip("\r\n")

        if not line:
            if not self._data:
                self._event = ""
                self._retry = None
                return None
            sse = ServerSentEvent(
                event=self._event or "message",
                data="\n".join(self._data),
                id=self._last_event_id,
                retry=self._retry,
            )
            self._event = ""
            self._data = []
            self._retry = None
            return sse

        if line.startswith(":"):
            return None

        name, _, value = line.partition(":")
        if value.startswith(" "):
            value = value[1:]

        if name == "data":
            self._data.append(value)
        elif name == "event":
            self._event = value
        elif name == "id":
            if "\0" not in value:
                self._last_event_id = value
        elif name == "retry":
            try:
                self._retry = int(value)
            except ValueError:
                pass
        # Unknown fields are ignored

        return None

    def flush(self) -> Optional[ServerSentEvent]:
        """Dispatch an event left unterminated at end of stream."""
        return self.decode("")


async def aiter_events(lines: AsyncIterable[str]) -> AsyncIterator[ServerSentEvent]:
    """
    Turn an async iterator of lines into server-sent events.

    Args:
        lines: e.g. httpx.Response.aiter_lines()
    """
    decoder = SSEDecoder()
    async for line in lines:
        sse = decoder.decode(line)
        if sse is not None:
            yield sse
    trailing = decoder.flush()
    if trailing is not None:
        yield trailing
