"""
LLM invocation facade.

Entry point for callers: validates input, consults the cache, sends the
misses through the provider adapter under a concurrency limiter, and keeps
callback handlers informed.

Flow:
    generate(prompts, stop)
        -> signature = cache_signature(stop)
        -> cache.lookup(prompt, signature) for each prompt
        -> adapter.generate(missing prompts) via ConcurrencyLimiter
        -> cache.update(prompt, signature, generations) for each miss
        -> LLMResult in caller order
"""

from typing import Any, Mapping, Optional, Sequence, Union

import structlog

from completion_core.cache.base import BaseCache
from completion_core.cache.keys import cache_signature
from completion_core.concurrency.limiter import ConcurrencyLimiter
from completion_core.exceptions import ConfigurationError, UnknownTypeError
from completion_core.llm.adapter import ProviderAdapter
from completion_core.llm.callbacks import CallbackHandler, CallbackManager, LoggingCallbackHandler
from completion_core.llm.openai_adapter import OpenAIAdapter
from completion_core.models.llm_models import Generation, LLMResult
from completion_core.monitoring.metrics import cache_lookups_total


logger = structlog.get_logger(__name__)

ADAPTER_REGISTRY: dict[str, type[ProviderAdapter]] = {
    OpenAIAdapter.llm_type: OpenAIAdapter,
}


class LLM:
    """
    Invocation facade over one provider adapter.

    Attributes:
        adapter: Provider adapter doing the actual requests
        cache: Injected cache store (None = no caching)
        use_cache: None uses the cache if present, False bypasses it,
            True requires one
        limiter: Admission queue for uncached dispatches
        callbacks: Lifecycle notification fan-out

    Example:
        async with LLM(OpenAIAdapter(), cache=InMemoryCache()) as llm:
            text = await llm.call("Tell me a joke")
    """

    def __init__(
        self,
        adapter: ProviderAdapter,
        *,
        cache: Optional[BaseCache] = None,
        use_cache: Optional[bool] = None,
        concurrency: Optional[int] = None,
        timeout: Optional[float] = None,
        callbacks: Union[CallbackManager, Sequence[CallbackHandler], None] = None,
        verbose: bool = False,
    ):
        """
        Initialize facade.

        Args:
            adapter: Provider adapter (required)
            cache: Cache store owned by the caller
            use_cache: Tri-state cache switch
            concurrency: Maximum simultaneous provider requests (None = unbounded)
            timeout: Per-request limiter timeout in seconds
            callbacks: Handlers or a ready CallbackManager
            verbose: Also log every lifecycle event

        Raises:
            ConfigurationError: Missing adapter or invalid limiter settings
        """
        if not isinstance(adapter, ProviderAdapter):
            raise ConfigurationError(
                "A provider adapter is required",
                details={"adapter": type(adapter).__name__},
            )
        self.adapter = adapter
        self.cache = cache
        self.use_cache = use_cache
        self.limiter = ConcurrencyLimiter(concurrency, timeout)
        if isinstance(callbacks, CallbackManager):
            self.callbacks = callbacks
        else:
            self.callbacks = CallbackManager(callbacks)
        self.verbose = verbose
        if verbose:
            self.callbacks.add_handler(LoggingCallbackHandler())

    @property
    def llm_type(self) -> str:
        return self.adapter.llm_type

    def cache_signature(self, stop: Optional[Sequence[str]] = None) -> str:
        """Cache signature for calls with the given per-call stop."""
        return cache_signature(self.adapter.signature_params(stop))

    async def generate(
        self,
        prompts: Sequence[str],
        stop: Optional[Sequence[str]] = None,
    ) -> LLMResult:
        """
        Generate completions for a list of prompts.

        Args:
            prompts: Prompts to complete
            stop: Stop sequences for this call only

        Returns:
            LLMResult with generations[i] belonging to prompts[i]

        Raises:
            TypeError: prompts is a string or holds non-strings
            ConfigurationError: Stop given twice, or cache required but absent
            TransportError: Provider failure after retries
            InvocationTimeoutError: Limiter timeout
        """
        if isinstance(prompts, str):
            raise TypeError("generate() expects a list of prompts, got a single string")
        prompts = list(prompts)
        for position, prompt in enumerate(prompts):
            if not isinstance(prompt, str):
                raise TypeError(
                    f"Prompt at position {position} must be str, got {type(prompt).__name__}"
                )
        self.adapter.resolve_stop(stop)

        if self.use_cache is True and self.cache is None:
            raise ConfigurationError("Caching was requested but no cache is configured")

        if self.cache is None or self.use_cache is False:
            return await self._generate_uncached(prompts, stop)

        signature = self.cache_signature(stop)
        cached: dict[int, list[Generation]] = {}
        missing_positions: list[int] = []
        for position, prompt in enumerate(prompts):
            generations = await self.cache.lookup(prompt, signature)
            if generations is None:
                missing_positions.append(position)
            else:
                cached[position] = generations
        cache_lookups_total.labels(result="hit").inc(len(cached))
        cache_lookups_total.labels(result="miss").inc(len(missing_positions))

        logger.debug(
            "Cache lookup complete",
            prompts=len(prompts),
            hits=len(cached),
            misses=len(missing_positions),
        )

        if not missing_positions:
            return LLMResult(generations=[cached[position] for position in range(len(prompts))])

        missing_prompts = [prompts[position] for position in missing_positions]
        fresh = await self._generate_uncached(missing_prompts, stop)

        for position, generations in zip(missing_positions, fresh.generations):
            cached[position] = generations
            await self.cache.update(prompts[position], signature, generations)

        return LLMResult(
            generations=[cached[position] for position in range(len(prompts))],
            token_usage=fresh.token_usage,
        )

    async def call(self, prompt: str, stop: Optional[Sequence[str]] = None) -> str:
        """Complete one prompt and return the first generation's text."""
        result = await self.generate([prompt], stop=stop)
        return result.generations[0][0].text

    async def _generate_uncached(
        self,
        prompts: list[str],
        stop: Optional[Sequence[str]],
    ) -> LLMResult:
        self.callbacks.on_llm_start(self.serialize(), prompts)
        try:
            result = await self.adapter.generate(
                prompts,
                stop,
                limiter=self.limiter,
                on_token=self.callbacks.on_llm_new_token,
            )
        except Exception as e:
            self.callbacks.on_llm_error(e)
            raise
        self.callbacks.on_llm_end(result)
        return result

    def serialize(self) -> dict[str, Any]:
        """Identifying parameters plus `_type`; never includes secrets."""
        return {**self.adapter.identifying_params(), "_type": self.llm_type}

    @classmethod
    def deserialize(
        cls,
        data: Mapping[str, Any],
        *,
        adapter_overrides: Optional[dict[str, Any]] = None,
        **facade_kwargs: Any,
    ) -> "LLM":
        """
        Rebuild an LLM from serialize() output.

        Args:
            data: Serialized mapping with a `_type` key
            adapter_overrides: Extra adapter arguments (api_key, executor, ...)
            **facade_kwargs: LLM constructor options (cache, concurrency, ...)

        Raises:
            UnknownTypeError: `_type` missing or not registered
        """
        config = dict(data)
        llm_type = config.pop("_type", None)
        adapter_cls = ADAPTER_REGISTRY.get(llm_type) if llm_type is not None else None
        if adapter_cls is None:
            raise UnknownTypeError(
                f"Cannot load LLM with type {llm_type!r}",
                details={"_type": llm_type, "known_types": sorted(ADAPTER_REGISTRY)},
            )
        adapter = adapter_cls.from_config(config, **(adapter_overrides or {}))
        return cls(adapter, **facade_kwargs)

    async def close(self) -> None:
        await self.adapter.close()

    async def __aenter__(self) -> "LLM":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"adapter={self.adapter!r}, "
            f"cache={type(self.cache).__name__ if self.cache else None}, "
            f"limiter={self.limiter!r})"
        )
