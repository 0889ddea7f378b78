"""
Provider adapter base classes.

An adapter turns a list of prompts into provider calls and maps the results
back to per-prompt generations. Two extension points:

BatchingAdapter, for providers that accept many prompts per request:

    prompts -> sub-batches of batch_size -> payloads
            -> limiter.submit(retry.execute(executor.execute(payload)))
            -> choices regrouped into lists of n per prompt

SinglePromptAdapter, for providers that complete one prompt per call:

    prompts -> limiter.submit(retry.execute(complete(prompt, stop)))
            -> one generation per prompt
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, ClassVar, Optional, Sequence, TypeVar

import structlog

from completion_core.concurrency.limiter import ConcurrencyLimiter
from completion_core.exceptions import ConfigurationError, TransportError
from completion_core.llm.base_client import CompletionExecutor
from completion_core.models.llm_models import Generation, InvocationParams, LLMResult, TokenUsage
from completion_core.retry.executor import RetryExecutor
from completion_core.streaming.reconstructor import TokenCallback


logger = structlog.get_logger(__name__)

T = TypeVar("T")


def chunk(items: Sequence[T], size: int) -> list[list[T]]:
    """Split items into consecutive lists of at most `size`, preserving order."""
    if size < 1:
        raise ValueError(f"chunk size must be >= 1, got {size}")
    return [list(items[i:i + size]) for i in range(0, len(items), size)]


async def gather_in_order(
    limiter: ConcurrencyLimiter,
    operations: Sequence[Callable[[], Awaitable[T]]],
) -> list[T]:
    """
    Submit every operation to the limiter and wait for all of them.

    Raises:
        Exception: The first failure in submission order, once all have settled
    """
    outcomes = await asyncio.gather(
        *(limiter.submit(operation) for operation in operations),
        return_exceptions=True,
    )
    for outcome in outcomes:
        if isinstance(outcome, BaseException):
            raise outcome
    return outcomes


class ProviderAdapter(ABC):
    """
    Abstract base class for provider adapters.

    Attributes:
        llm_type: Registry key written as `_type` when serializing
        params: Sampling parameters sent with every request
        retry: Retry executor wrapped around every provider call
    """

    llm_type: ClassVar[str]

    def __init__(self, *, params: InvocationParams, retry: RetryExecutor):
        self.params = params
        self.retry = retry

    def resolve_stop(self, stop: Optional[Sequence[str]] = None) -> Optional[list[str]]:
        """
        Effective stop sequences for one call.

        Raises:
            ConfigurationError: stop given here and at construction
        """
        if stop is not None and self.params.stop is not None:
            raise ConfigurationError(
                "Stop sequences found in both the call arguments and the default parameters",
                details={"call_stop": list(stop), "default_stop": self.params.stop},
            )
        if stop is not None:
            return list(stop)
        return self.params.stop

    def signature_params(self, stop: Optional[Sequence[str]] = None) -> dict[str, Any]:
        """Parameters that determine a completion, with the effective stop applied."""
        params = self.params.with_stop(self.resolve_stop(stop))
        return {**params.model_dump(), "_type": self.llm_type}

    @abstractmethod
    def identifying_params(self) -> dict[str, Any]:
        """Constructor-compatible parameters describing this adapter (no secrets)."""

    @classmethod
    def from_config(cls, config: dict[str, Any], **overrides: Any) -> "ProviderAdapter":
        """
        Rebuild an adapter from identifying parameters.

        Args:
            config: Output of identifying_params()
            **overrides: Extra constructor arguments (api_key, executor, ...)

        Raises:
            ConfigurationError: config holds parameters the adapter does not accept
        """
        try:
            return cls(**{**config, **overrides})
        except TypeError as e:
            raise ConfigurationError(
                f"Invalid {cls.llm_type} configuration: {e}",
                details={"keys": sorted(config)},
            ) from e

    @abstractmethod
    async def generate(
        self,
        prompts: Sequence[str],
        stop: Optional[Sequence[str]] = None,
        *,
        limiter: ConcurrencyLimiter,
        on_token: Optional[TokenCallback] = None,
    ) -> LLMResult:
        """
        Generate completions for prompts, bypassing any cache.

        Args:
            prompts: Prompts in caller order
            stop: Per-call stop sequences
            limiter: Admission queue every provider call goes through
            on_token: Receives streamed text fragments

        Returns:
            LLMResult with one list of generations per prompt, in order

        Raises:
            ConfigurationError: Conflicting stop sequences
            TransportError: First failing call's error, after retries
            InvocationTimeoutError: A call overran the limiter timeout
        """

    async def close(self) -> None:
        logger.debug("Closing adapter", llm_type=self.llm_type)


class BatchingAdapter(ProviderAdapter):
    """
    Adapter for providers that take a list of prompts per request.

    Subclasses supply the wire format (payload building, choice mapping) and
    their identifying parameters.

    Attributes:
        executor: Performs single provider requests
        batch_size: Maximum prompts per provider request
    """

    def __init__(
        self,
        *,
        params: InvocationParams,
        executor: CompletionExecutor,
        retry: RetryExecutor,
        batch_size: int = 20,
    ):
        if batch_size < 1:
            raise ConfigurationError(
                f"batch_size must be >= 1, got {batch_size}",
                details={"batch_size": batch_size},
            )
        super().__init__(params=params, retry=retry)
        self.executor = executor
        self.batch_size = batch_size

    @abstractmethod
    def build_payload(self, params: InvocationParams, prompts: list[str]) -> dict[str, Any]:
        """Provider request body for one sub-batch."""

    @abstractmethod
    def parse_choice(self, choice: dict[str, Any]) -> Generation:
        """Map one provider choice to a Generation."""

    async def generate(
        self,
        prompts: Sequence[str],
        stop: Optional[Sequence[str]] = None,
        *,
        limiter: ConcurrencyLimiter,
        on_token: Optional[TokenCallback] = None,
    ) -> LLMResult:
        """
        Generate completions in sub-batches of batch_size prompts.

        Streaming forces one prompt per sub-batch. Each prompt gets a list of
        exactly n generations.
        """
        params = self.params.with_stop(self.resolve_stop(stop))
        batch_size = 1 if params.streaming else self.batch_size
        sub_batches = chunk(list(prompts), batch_size)

        logger.debug(
            "Dispatching sub-batches",
            llm_type=self.llm_type,
            prompts=len(prompts),
            sub_batches=len(sub_batches),
            batch_size=batch_size,
        )

        responses = await gather_in_order(
            limiter,
            [self._sub_batch_operation(params, sub_prompts, on_token) for sub_prompts in sub_batches],
        )

        choices: list[dict[str, Any]] = []
        token_usage = TokenUsage()
        for response in responses:
            choices.extend(
                sorted(response.get("choices") or [], key=lambda choice: choice.get("index", 0))
            )
            token_usage.add(response.get("usage"))

        expected = len(prompts) * params.n
        if len(choices) != expected:
            raise TransportError(
                f"Provider returned {len(choices)} choices, expected {expected}",
                details={"prompts": len(prompts), "n": params.n},
                retryable=False,
            )

        generations = [
            [self.parse_choice(choice) for choice in group]
            for group in chunk(choices, params.n)
        ]
        return LLMResult(generations=generations, token_usage=token_usage)

    def _sub_batch_operation(
        self,
        params: InvocationParams,
        prompts: list[str],
        on_token: Optional[TokenCallback],
    ):
        payload = self.build_payload(params, prompts)
        token_callback = on_token if params.streaming else None

        async def operation() -> dict[str, Any]:
            return await self.retry.execute(
                lambda: self.executor.execute(payload, on_token=token_callback),
                description=f"{self.llm_type}.completion",
            )

        return operation

    async def close(self) -> None:
        await self.executor.close()


class SinglePromptAdapter(ProviderAdapter):
    """
    Adapter for providers that complete one prompt per call.

    Subclasses implement complete() and identifying_params(). Every prompt
    becomes its own limiter submission with retries, and yields a single
    Generation. Token usage is not reported.

    Example:
        class EchoAdapter(SinglePromptAdapter):
            llm_type = "echo"

            async def complete(self, prompt, stop):
                return prompt

            def identifying_params(self):
                return {}
    """

    @abstractmethod
    async def complete(self, prompt: str, stop: Optional[list[str]]) -> str:
        """
        Complete one prompt.

        Args:
            prompt: Prompt text
            stop: Effective stop sequences for the call

        Returns:
            Completion text
        """

    async def generate(
        self,
        prompts: Sequence[str],
        stop: Optional[Sequence[str]] = None,
        *,
        limiter: ConcurrencyLimiter,
        on_token: Optional[TokenCallback] = None,
    ) -> LLMResult:
        effective_stop = self.resolve_stop(stop)

        logger.debug("Dispatching single-prompt calls", llm_type=self.llm_type, prompts=len(prompts))

        texts = await gather_in_order(
            limiter,
            [self._prompt_operation(prompt, effective_stop) for prompt in prompts],
        )
        return LLMResult(generations=[[Generation(text=text)] for text in texts])

    def _prompt_operation(self, prompt: str, stop: Optional[list[str]]):
        async def operation() -> str:
            return await self.retry.execute(
                lambda: self.complete(prompt, stop),
                description=f"{self.llm_type}.complete",
            )

        return operation
