"""
Streaming response handling.

- sse.py: server-sent-event line decoder
- reconstructor.py: state machine assembling deltas into one completion
"""

from completion_core.streaming.reconstructor import (
    DONE_SENTINEL,
    StreamAccumulator,
    StreamReconstructor,
    StreamState,
    TokenCallback,
)
from completion_core.streaming.sse import ServerSentEvent, SSEDecoder, aiter_events

__all__ = [
    "DONE_SENTINEL",
    "SSEDecoder",
    "ServerSentEvent",
    "StreamAccumulator",
    "StreamReconstructor",
    "StreamState",
    "TokenCallback",
    "aiter_events",
]
