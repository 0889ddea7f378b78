"""
Unit tests for server-sent-event decoding.
"""

import pytest

from completion_core.streaming.sse import ServerSentEvent, SSEDecoder, aiter_events


async def _lines(items):
    for item in items:
        yield item


def test_single_data_event():
    decoder = SSEDecoder()

    assert decoder.decode('data: {"a": 1}') is None
    event = decoder.decode("")

    assert event == ServerSentEvent(data='{"a": 1}')


def test_multiline_data_joined():
    decoder = SSEDecoder()
    decoder.decode("data: first")
    decoder.decode("data: second")

    assert decoder.decode("").data == "first\nsecond"


def test_comments_and_unknown_fields_ignored():
    decoder = SSEDecoder()

    assert decoder.decode(": keep-alive") is None
    assert decoder.decode("foo: bar") is None
    assert decoder.decode("") is None


def test_event_id_and_retry_fields():
    decoder = SSEDecoder()
    decoder.decode("event: update")
    decoder.decode("id: 42")
    decoder.decode("retry: 3000")
    decoder.decode("data:no-space")

    event = decoder.decode("")

    assert event.event == "update"
    assert event.id == "42"
    assert event.retry == 3000
    assert event.data == "no-space"


def test_invalid_retry_ignored():
    decoder = SSEDecoder()
    decoder.decode("retry: soon")
    decoder.decode("data: x")

    assert decoder.decode("").retry is None


def test_crlf_terminators_stripped():
    decoder = SSEDecoder()
    decoder.decode("data: x\r\n")

    assert decoder.decode("\r\n").data == "x"


def test_flush_dispatches_trailing_event():
    decoder = SSEDecoder()
    decoder.decode("data: [DONE]")

    assert decoder.flush().data == "[DONE]"
    assert decoder.flush() is None


@pytest.mark.asyncio
async def test_aiter_events():
    lines = ["data: one", "", ": ping", "data: two", "", "data: three"]

    events = [event.data async for event in aiter_events(_lines(lines))]

    assert events == ["one", "two", "three"]
