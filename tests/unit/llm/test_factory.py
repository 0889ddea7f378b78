"""
Unit tests for settings-driven construction.
"""

from unittest.mock import MagicMock, patch

import pytest

from completion_core.cache.base import InMemoryCache
from completion_core.cache.redis_cache import RedisCache
from completion_core.exceptions import ConfigurationError
from completion_core.llm.factory import build_cache, create_llm
from completion_core.llm.openai_client import OpenAIClient
from completion_core.llm.tracking import RequestTrackingExecutor


def test_build_cache_memory(test_settings):
    assert isinstance(build_cache(test_settings), InMemoryCache)


def test_build_cache_none(test_settings):
    test_settings.CACHE_BACKEND = "none"
    assert build_cache(test_settings) is None


def test_build_cache_redis(test_settings):
    test_settings.CACHE_BACKEND = "redis"
    test_settings.CACHE_TTL_SECONDS = 120

    with patch("completion_core.llm.factory.RedisClient") as mock_client:
        mock_client.get_async_client.return_value = MagicMock()
        cache = build_cache(test_settings)

    assert isinstance(cache, RedisCache)
    assert cache.ttl_seconds == 120
    assert cache.prefix == test_settings.CACHE_KEY_PREFIX
    mock_client.get_async_client.assert_called_once_with(test_settings)


def test_create_llm_from_settings(test_settings):
    test_settings.LLM_CONCURRENCY = 4
    test_settings.LLM_TIMEOUT = 30.0

    llm = create_llm(test_settings)

    assert isinstance(llm.adapter.executor, OpenAIClient)
    assert isinstance(llm.cache, InMemoryCache)
    assert llm.limiter.concurrency == 4
    assert llm.limiter.timeout == 30.0
    assert llm.adapter.params.streaming is False


def test_create_llm_overrides(test_settings):
    llm = create_llm(test_settings, model_name="davinci-002", batch_size=5, streaming=True)

    assert llm.adapter.params.model_name == "davinci-002"
    assert llm.adapter.batch_size == 5
    assert llm.adapter.params.streaming is True


def test_create_llm_streaming_from_settings(test_settings):
    test_settings.LLM_STREAMING = True

    assert create_llm(test_settings).adapter.params.streaming is True


def test_create_llm_wraps_tracking(test_settings):
    test_settings.PROMPTLAYER_API_KEY = "pl-key"
    test_settings.PROMPTLAYER_TAGS = ["prod"]

    llm = create_llm(test_settings)

    executor = llm.adapter.executor
    assert isinstance(executor, RequestTrackingExecutor)
    assert isinstance(executor.inner, OpenAIClient)
    assert executor.tags == ["prod"]
    assert executor.url == test_settings.PROMPTLAYER_URL


def test_create_llm_explicit_cache_wins(test_settings):
    cache = InMemoryCache()
    test_settings.CACHE_BACKEND = "none"

    assert create_llm(test_settings, cache=cache).cache is cache


def test_create_llm_missing_key(test_settings):
    test_settings.OPENAI_API_KEY = None

    with pytest.raises(ConfigurationError):
        create_llm(test_settings)
