"""Unit test fixtures (mocks and stubs).

Provides fake executors and mock clients for testing without network access.
"""

import asyncio
from typing import Any, Optional
from unittest.mock import AsyncMock

import pytest

from completion_core.llm.base_client import CompletionExecutor
from completion_core.llm.openai_adapter import OpenAIAdapter
from completion_core.retry.policy import RetryPolicy


def echo_response(request: dict[str, Any], usage: Optional[dict[str, int]] = None) -> dict[str, Any]:
    """Provider-shaped response answering every prompt with "<prompt>:<j>"."""
    prompts = request.get("prompt") or []
    n = request.get("n", 1)
    choices = [
        {"text": f"{prompt}:{j}", "index": i * n + j, "finish_reason": "stop", "logprobs": None}
        for i, prompt in enumerate(prompts)
        for j in range(n)
    ]
    if usage is None:
        usage = {
            "prompt_tokens": len(prompts),
            "completion_tokens": len(choices),
            "total_tokens": len(prompts) + len(choices),
        }
    return {"choices": choices, "usage": usage}


class FakeExecutor(CompletionExecutor):
    """In-memory executor recording requests.

    Scripted outcomes (response dicts or exceptions) are consumed first, in
    call order; afterwards every request gets an echo_response.
    """

    def __init__(
        self,
        outcomes: Optional[list[Any]] = None,
        delay: float = 0.0,
        usage: Optional[dict[str, int]] = None,
    ):
        self.outcomes = list(outcomes or [])
        self.delay = delay
        self.usage = usage
        self.requests: list[dict[str, Any]] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.closed = False

    async def execute(self, request, *, on_token=None):
        self.requests.append(request)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            if self.outcomes:
                outcome = self.outcomes.pop(0)
                if isinstance(outcome, BaseException):
                    raise outcome
                return outcome
            return echo_response(request, usage=self.usage)
        finally:
            self.in_flight -= 1

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def make_executor():
    """Factory fixture for FakeExecutor.

    Usage:
        def test_something(make_executor):
            executor = make_executor(outcomes=[TransportError("boom")])
    """
    def _create(**kwargs) -> FakeExecutor:
        return FakeExecutor(**kwargs)

    return _create


@pytest.fixture
def fake_executor() -> FakeExecutor:
    return FakeExecutor()


@pytest.fixture
def make_adapter(test_settings):
    """Factory fixture for OpenAIAdapter wired to a fake executor and zero backoff.

    Usage:
        def test_something(make_adapter, fake_executor):
            adapter = make_adapter(fake_executor, batch_size=2)
    """
    def _create(executor: CompletionExecutor, max_attempts: int = 3, **kwargs) -> OpenAIAdapter:
        return OpenAIAdapter(
            executor=executor,
            retry_policy=RetryPolicy(max_attempts=max_attempts, starting_delay=0.0, max_delay=0.0),
            settings=test_settings,
            **kwargs,
        )

    return _create


@pytest.fixture
def mock_async_redis():
    """Mock AsyncRedis client for unit tests (async)."""
    mock = AsyncMock()
    mock.set = AsyncMock(return_value=True)
    mock.get = AsyncMock(return_value=None)
    mock.delete = AsyncMock(return_value=1)
    mock.exists = AsyncMock(return_value=False)
    mock.ttl = AsyncMock(return_value=-1)
    return mock
