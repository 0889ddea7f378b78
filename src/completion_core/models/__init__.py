"""
Pydantic data models for the invocation core.

Includes:
- InvocationParams (frozen sampling parameters, source of the cache signature)
- Generation (one completion)
- TokenUsage (usage accumulator)
- LLMResult (per-prompt generation lists plus usage)
"""

from completion_core.models.llm_models import (
    Generation,
    InvocationParams,
    LLMResult,
    TokenUsage,
)

__all__ = [
    "Generation",
    "InvocationParams",
    "LLMResult",
    "TokenUsage",
]
