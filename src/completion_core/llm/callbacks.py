"""
Invocation lifecycle notifications.

Handlers observe invocations; they cannot change results. A handler that
raises is logged and skipped so observability never breaks a completion.
"""

from typing import Any, Optional, Sequence

import structlog

from completion_core.models.llm_models import LLMResult


logger = structlog.get_logger(__name__)


class CallbackHandler:
    """Base handler. Override the hooks you need; the rest do nothing."""

    def on_llm_start(self, serialized: dict[str, Any], prompts: list[str]) -> None:
        pass

    def on_llm_new_token(self, token: str) -> None:
        pass

    def on_llm_end(self, result: LLMResult) -> None:
        pass

    def on_llm_error(self, error: BaseException) -> None:
        pass


class LoggingCallbackHandler(CallbackHandler):
    """Logs every lifecycle event; installed by LLM(verbose=True)."""

    def __init__(self) -> None:
        self.logger = structlog.get_logger("completion_core.llm.verbose")

    def on_llm_start(self, serialized: dict[str, Any], prompts: list[str]) -> None:
        self.logger.info(
            "LLM start",
            llm_type=serialized.get("_type"),
            model=serialized.get("model_name"),
            prompts=len(prompts),
        )

    def on_llm_new_token(self, token: str) -> None:
        self.logger.debug("LLM token", token=token)

    def on_llm_end(self, result: LLMResult) -> None:
        self.logger.info(
            "LLM end",
            generations=len(result.generations),
            token_usage=result.token_usage.as_dict(),
        )

    def on_llm_error(self, error: BaseException) -> None:
        self.logger.error("LLM error", error_type=type(error).__name__, error=str(error))


class CallbackManager:
    """Fans notifications out to a list of handlers."""

    def __init__(self, handlers: Optional[Sequence[CallbackHandler]] = None):
        self.handlers: list[CallbackHandler] = list(handlers or [])

    def add_handler(self, handler: CallbackHandler) -> None:
        self.handlers.append(handler)

    def remove_handler(self, handler: CallbackHandler) -> None:
        self.handlers.remove(handler)

    def on_llm_start(self, serialized: dict[str, Any], prompts: list[str]) -> None:
        self._dispatch("on_llm_start", serialized, prompts)

    def on_llm_new_token(self, token: str) -> None:
        self._dispatch("on_llm_new_token", token)

    def on_llm_end(self, result: LLMResult) -> None:
        self._dispatch("on_llm_end", result)

    def on_llm_error(self, error: BaseException) -> None:
        self._dispatch("on_llm_error", error)

    def _dispatch(self, hook: str, *args: Any) -> None:
        for handler in self.handlers:
            try:
                getattr(handler, hook)(*args)
            except Exception as e:
                logger.warning(
                    "Callback handler failed",
                    handler=type(handler).__name__,
                    hook=hook,
                    error_type=type(e).__name__,
                    error=str(e),
                )
