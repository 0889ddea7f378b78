"""Shared test fixtures and configuration for all tests.

This conftest.py provides common fixtures used across unit and integration tests.
"""

import pytest
from prometheus_client import REGISTRY

from completion_core.config import Settings


@pytest.fixture
def test_settings() -> Settings:
    """Test settings with safe defaults for local testing.

    No .env file is read, so developer credentials never leak into tests.
    Override specific settings in individual tests as needed:
        def test_something(test_settings):
            test_settings.LLM_BATCH_SIZE = 2
    """
    return Settings(
        _env_file=None,
        # === Application ===
        APP_NAME="completion-core (Test)",
        LOG_LEVEL="DEBUG",
        ENVIRONMENT="development",

        # === OpenAI Provider ===
        OPENAI_API_KEY="sk-test",
        OPENAI_BASE_URL="https://api.openai.test/v1",
        OPENAI_ORGANIZATION=None,
        OPENAI_TIMEOUT=5.0,

        # === Invocation Defaults ===
        LLM_MODEL_NAME="gpt-3.5-turbo-instruct",
        LLM_BATCH_SIZE=20,
        LLM_STREAMING=False,
        LLM_CONCURRENCY=None,
        LLM_TIMEOUT=None,

        # === Retry (no real waiting in tests) ===
        MAX_RETRIES=6,
        RETRY_STARTING_DELAY=0.0,
        RETRY_MAX_DELAY=0.0,
        RETRY_BACKOFF_BASE=2.0,

        # === Cache ===
        CACHE_BACKEND="memory",
        CACHE_TTL_SECONDS=None,
        CACHE_KEY_PREFIX="test:llm:cache:",
        REDIS_URL="redis://localhost:6379/15",
        REDIS_MAX_CONNECTIONS=10,

        # === Request Tracking ===
        PROMPTLAYER_API_KEY=None,
        PROMPTLAYER_URL="https://tracking.test/track-request",
        PROMPTLAYER_TAGS=[],
    )


@pytest.fixture
def metric_value():
    """Read the current value of a Prometheus sample (0.0 if never recorded).

    Metrics live in the global registry, so tests compare before/after values:
        before = metric_value("retries_total", {"operation": "x", "outcome": "retried"})
    """
    def _read(name: str, labels: dict | None = None) -> float:
        return REGISTRY.get_sample_value(name, labels or {}) or 0.0

    return _read
