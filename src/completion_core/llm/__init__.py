"""
LLM invocation module.

- invoker.py: LLM facade (cache, limiter, callbacks)
- adapter.py: batching and single-prompt adapter bases
- openai_adapter.py: OpenAI wire format
- base_client.py / openai_client.py: single-request executors over httpx
- tracking.py: request-tracking executor decorator
- callbacks.py: lifecycle notification handlers
- factory.py: settings-driven construction
"""

from completion_core.llm.adapter import (
    BatchingAdapter,
    ProviderAdapter,
    SinglePromptAdapter,
    chunk,
)
from completion_core.llm.base_client import CompletionExecutor
from completion_core.llm.callbacks import (
    CallbackHandler,
    CallbackManager,
    LoggingCallbackHandler,
)
from completion_core.llm.factory import build_cache, create_llm
from completion_core.llm.invoker import ADAPTER_REGISTRY, LLM
from completion_core.llm.openai_adapter import OpenAIAdapter
from completion_core.llm.openai_client import OpenAIClient
from completion_core.llm.tracking import RequestTrackingExecutor

__all__ = [
    "ADAPTER_REGISTRY",
    "BatchingAdapter",
    "CallbackHandler",
    "CallbackManager",
    "CompletionExecutor",
    "LLM",
    "LoggingCallbackHandler",
    "OpenAIAdapter",
    "OpenAIClient",
    "ProviderAdapter",
    "RequestTrackingExecutor",
    "SinglePromptAdapter",
    "build_cache",
    "chunk",
    "create_llm",
]
