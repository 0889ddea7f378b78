"""
Data models for the completion request/response cycle.

These models are provider-agnostic: adapters translate InvocationParams into
their own wire format and map raw provider choices back into Generation
objects.
"""

from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field


class InvocationParams(BaseModel):
    """
    Immutable sampling parameters for a completion call.

    Used both to build the provider request and to derive the cache
    signature, so two instances with equal field values must be
    interchangeable.
    """
    model_config = ConfigDict(frozen=True, protected_namespaces=())

    model_name: str = Field(..., description="Provider model identifier")
    temperature: float = Field(default=0.7, ge=0.0, le=2.0, description="Sampling temperature")
    max_tokens: int = Field(
        default=256,
        ge=-1,
        description="Maximum tokens to generate (-1 lets the provider use the remaining context)",
    )
    top_p: float = Field(default=1.0, ge=0.0, le=1.0, description="Nucleus sampling mass")
    frequency_penalty: float = Field(default=0.0, description="Penalty for frequent tokens")
    presence_penalty: float = Field(default=0.0, description="Penalty for repeated tokens")
    n: int = Field(default=1, ge=1, description="Completions to generate per prompt")
    best_of: int = Field(default=1, ge=1, description="Server-side candidates per prompt")
    logit_bias: Optional[dict[str, float]] = Field(default=None, description="Token bias map")
    stop: Optional[list[str]] = Field(default=None, description="Stop sequences")
    streaming: bool = Field(default=False, description="Request a server-sent-event stream")
    model_kwargs: dict[str, Any] = Field(
        default_factory=dict,
        description="Provider-specific overrides merged into the request as-is",
    )

    def with_stop(self, stop: Optional[list[str]]) -> "InvocationParams":
        """Return a copy carrying the effective stop list for one call."""
        return self.model_copy(update={"stop": list(stop) if stop is not None else None})


class Generation(BaseModel):
    """One completion produced for one prompt."""

    text: str = Field(..., description="Generated text")
    finish_reason: Optional[str] = Field(default=None, description="Why generation stopped")
    logprobs: Optional[Any] = Field(default=None, description="Provider log-probability payload")


class TokenUsage(BaseModel):
    """
    Running token counters across the sub-batches of one generate call.

    A field stays None until some sub-batch reports a non-zero value for it.
    """

    completion_tokens: Optional[int] = None
    prompt_tokens: Optional[int] = None
    total_tokens: Optional[int] = None

    def add(self, usage: Optional[Mapping[str, Any]]) -> "TokenUsage":
        """Accumulate a provider usage block in place and return self."""
        if not usage:
            return self
        for field_name in ("completion_tokens", "prompt_tokens", "total_tokens"):
            value = usage.get(field_name)
            if value:
                setattr(self, field_name, (getattr(self, field_name) or 0) + value)
        return self

    def as_dict(self) -> dict[str, int]:
        """Reported counters only; absent fields are omitted."""
        return self.model_dump(exclude_none=True)


class LLMResult(BaseModel):
    """
    Result of a generate call.

    `generations[i]` holds the completions for the i-th input prompt.
    """

    generations: list[list[Generation]] = Field(default_factory=list)
    token_usage: TokenUsage = Field(default_factory=TokenUsage)

    @property
    def llm_output(self) -> dict[str, Any]:
        """Provider output mapping in the shape chain collaborators expect."""
        return {"token_usage": self.token_usage.as_dict()}
