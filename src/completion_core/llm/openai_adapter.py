"""
OpenAI completions adapter.
"""

from typing import Any, Optional

import structlog
from pydantic import ValidationError

from completion_core.config import Settings, get_settings
from completion_core.exceptions import ConfigurationError
from completion_core.llm.adapter import BatchingAdapter
from completion_core.llm.base_client import CompletionExecutor
from completion_core.llm.openai_client import OpenAIClient
from completion_core.models.llm_models import Generation, InvocationParams
from completion_core.retry.executor import RetryExecutor
from completion_core.retry.policy import RetryPolicy


logger = structlog.get_logger(__name__)


class OpenAIAdapter(BatchingAdapter):
    """
    Adapter for OpenAI-compatible text completion endpoints.

    Unset options fall back to Settings (environment / .env):
    model_name, batch_size, max_retries, api_key, base_url, organization,
    request_timeout and the retry delays.

    Example:
        adapter = OpenAIAdapter(model_name="gpt-3.5-turbo-instruct", temperature=0)
        llm = LLM(adapter, concurrency=4)
    """

    llm_type = "openai"

    def __init__(
        self,
        *,
        model_name: Optional[str] = None,
        temperature: float = 0.7,
        max_tokens: int = 256,
        top_p: float = 1.0,
        frequency_penalty: float = 0.0,
        presence_penalty: float = 0.0,
        n: int = 1,
        best_of: int = 1,
        logit_bias: Optional[dict[str, float]] = None,
        stop: Optional[list[str]] = None,
        streaming: bool = False,
        model_kwargs: Optional[dict[str, Any]] = None,
        batch_size: Optional[int] = None,
        max_retries: Optional[int] = None,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        organization: Optional[str] = None,
        request_timeout: Optional[float] = None,
        executor: Optional[CompletionExecutor] = None,
        retry_policy: Optional[RetryPolicy] = None,
        settings: Optional[Settings] = None,
    ):
        """
        Raises:
            ConfigurationError: Missing API key, streaming with n > 1 or
                best_of > 1, or invalid parameter values
        """
        settings = settings or get_settings()

        if streaming and n > 1:
            raise ConfigurationError("Cannot stream results when n > 1", details={"n": n})
        if streaming and best_of > 1:
            raise ConfigurationError(
                "Cannot stream results when best_of > 1",
                details={"best_of": best_of},
            )

        api_key = api_key or settings.OPENAI_API_KEY
        if not api_key:
            raise ConfigurationError(
                "OpenAI API key not found; pass api_key or set OPENAI_API_KEY",
                details={"env_var": "OPENAI_API_KEY"},
            )

        try:
            params = InvocationParams(
                model_name=model_name or settings.LLM_MODEL_NAME,
                temperature=temperature,
                max_tokens=max_tokens,
                top_p=top_p,
                frequency_penalty=frequency_penalty,
                presence_penalty=presence_penalty,
                n=n,
                best_of=best_of,
                logit_bias=logit_bias,
                stop=stop,
                streaming=streaming,
                model_kwargs=model_kwargs or {},
            )
        except ValidationError as e:
            raise ConfigurationError(
                "Invalid invocation parameters",
                details={"errors": e.errors(include_url=False)},
            ) from e

        self.base_url = base_url or settings.OPENAI_BASE_URL
        self.organization = organization or settings.OPENAI_ORGANIZATION
        self.request_timeout = request_timeout or settings.OPENAI_TIMEOUT

        if retry_policy is None:
            retry_policy = RetryPolicy(
                max_attempts=max_retries if max_retries is not None else settings.MAX_RETRIES,
                starting_delay=settings.RETRY_STARTING_DELAY,
                max_delay=settings.RETRY_MAX_DELAY,
                multiplier=settings.RETRY_BACKOFF_BASE,
            )

        if executor is None:
            executor = OpenAIClient(
                api_key=api_key,
                base_url=self.base_url,
                organization=self.organization,
                timeout=self.request_timeout,
            )

        super().__init__(
            params=params,
            executor=executor,
            retry=RetryExecutor(retry_policy),
            batch_size=batch_size if batch_size is not None else settings.LLM_BATCH_SIZE,
        )

        logger.debug(
            "OpenAI adapter initialized",
            model=params.model_name,
            batch_size=self.batch_size,
            streaming=streaming,
            max_retries=retry_policy.max_attempts,
        )

    @property
    def max_retries(self) -> int:
        return self.retry.policy.max_attempts

    def identifying_params(self) -> dict[str, Any]:
        return {
            **self.params.model_dump(),
            "batch_size": self.batch_size,
            "max_retries": self.max_retries,
            "base_url": self.base_url,
            "organization": self.organization,
            "request_timeout": self.request_timeout,
        }

    def build_payload(self, params: InvocationParams, prompts: list[str]) -> dict[str, Any]:
        payload = {
            "model": params.model_name,
            "temperature": params.temperature,
            "max_tokens": params.max_tokens,
            "top_p": params.top_p,
            "frequency_penalty": params.frequency_penalty,
            "presence_penalty": params.presence_penalty,
            "n": params.n,
            "best_of": params.best_of,
            "logit_bias": params.logit_bias,
            "stop": params.stop,
            "stream": params.streaming,
        }
        payload = {key: value for key, value in payload.items() if value is not None}
        payload.update(params.model_kwargs)
        payload["prompt"] = list(prompts)
        return payload

    def parse_choice(self, choice: dict[str, Any]) -> Generation:
        return Generation(
            text=choice.get("text") or "",
            finish_reason=choice.get("finish_reason"),
            logprobs=choice.get("logprobs"),
        )

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"model_name={self.params.model_name}, "
            f"batch_size={self.batch_size}, "
            f"streaming={self.params.streaming})"
        )
