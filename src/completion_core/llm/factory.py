"""
Construction helpers wiring settings into ready-to-use components.

Builds the provider adapter, optional request tracking, the configured
cache backend and the LLM facade from a Settings instance.
"""

from typing import Any, Optional, Sequence, Union

import structlog

from completion_core.cache.base import BaseCache, InMemoryCache
from completion_core.cache.redis_cache import RedisCache
from completion_core.cache.redis_client import RedisClient
from completion_core.config import Settings, get_settings
from completion_core.llm.callbacks import CallbackHandler, CallbackManager
from completion_core.llm.invoker import LLM
from completion_core.llm.openai_adapter import OpenAIAdapter
from completion_core.llm.tracking import RequestTrackingExecutor


logger = structlog.get_logger(__name__)


def build_cache(settings: Settings) -> Optional[BaseCache]:
    """
    Create the cache backend selected by CACHE_BACKEND.

    Args:
        settings: Application settings

    Returns:
        Cache instance, or None when caching is disabled
    """
    if settings.CACHE_BACKEND == "none":
        return None
    if settings.CACHE_BACKEND == "redis":
        return RedisCache(
            RedisClient.get_async_client(settings),
            ttl_seconds=settings.CACHE_TTL_SECONDS,
            prefix=settings.CACHE_KEY_PREFIX,
        )
    return InMemoryCache()


def create_llm(
    settings: Optional[Settings] = None,
    *,
    cache: Optional[BaseCache] = None,
    callbacks: Union[CallbackManager, Sequence[CallbackHandler], None] = None,
    verbose: bool = False,
    **overrides: Any,
) -> LLM:
    """
    Build an LLM facade from settings.

    Args:
        settings: Application settings (defaults to the global instance)
        cache: Cache to use instead of the CACHE_BACKEND one
        callbacks: Lifecycle handlers
        verbose: Log every lifecycle event
        **overrides: OpenAIAdapter constructor arguments

    Returns:
        LLM instance

    Raises:
        ConfigurationError: Missing API keys or invalid settings
    """
    settings = settings or get_settings()

    adapter_options: dict[str, Any] = {"streaming": settings.LLM_STREAMING}
    adapter_options.update(overrides)
    adapter = OpenAIAdapter(settings=settings, **adapter_options)

    if settings.PROMPTLAYER_API_KEY:
        adapter.executor = RequestTrackingExecutor(
            adapter.executor,
            api_key=settings.PROMPTLAYER_API_KEY,
            url=settings.PROMPTLAYER_URL,
            tags=settings.PROMPTLAYER_TAGS,
        )

    if cache is None:
        cache = build_cache(settings)

    logger.info(
        "LLM created",
        model=adapter.params.model_name,
        cache_backend=type(cache).__name__ if cache else None,
        concurrency=settings.LLM_CONCURRENCY,
        request_tracking=bool(settings.PROMPTLAYER_API_KEY),
    )

    return LLM(
        adapter,
        cache=cache,
        concurrency=settings.LLM_CONCURRENCY,
        timeout=settings.LLM_TIMEOUT,
        callbacks=callbacks,
        verbose=verbose,
    )
