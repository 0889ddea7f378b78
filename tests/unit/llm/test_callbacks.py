"""
Unit tests for callback handlers and the callback manager.
"""

from unittest.mock import MagicMock

from completion_core.llm.callbacks import CallbackHandler, CallbackManager, LoggingCallbackHandler
from completion_core.models.llm_models import Generation, LLMResult


class RecordingHandler(CallbackHandler):
    def __init__(self):
        self.events = []

    def on_llm_start(self, serialized, prompts):
        self.events.append(("start", serialized["_type"], prompts))

    def on_llm_new_token(self, token):
        self.events.append(("token", token))

    def on_llm_end(self, result):
        self.events.append(("end", len(result.generations)))

    def on_llm_error(self, error):
        self.events.append(("error", str(error)))


def test_manager_fans_out_to_all_handlers():
    first, second = RecordingHandler(), RecordingHandler()
    manager = CallbackManager([first, second])

    manager.on_llm_start({"_type": "openai"}, ["p"])
    manager.on_llm_new_token("tok")
    manager.on_llm_end(LLMResult(generations=[[Generation(text="x")]]))
    manager.on_llm_error(RuntimeError("boom"))

    expected = [("start", "openai", ["p"]), ("token", "tok"), ("end", 1), ("error", "boom")]
    assert first.events == expected
    assert second.events == expected


def test_failing_handler_does_not_stop_others():
    broken = MagicMock(spec=CallbackHandler)
    broken.on_llm_start.side_effect = RuntimeError("handler bug")
    recorder = RecordingHandler()
    manager = CallbackManager([broken, recorder])

    manager.on_llm_start({"_type": "openai"}, ["p"])

    assert recorder.events == [("start", "openai", ["p"])]


def test_base_handler_hooks_are_noops():
    handler = CallbackHandler()

    handler.on_llm_start({}, [])
    handler.on_llm_new_token("x")
    handler.on_llm_end(LLMResult())
    handler.on_llm_error(ValueError())


def test_add_and_remove_handler():
    manager = CallbackManager()
    handler = RecordingHandler()

    manager.add_handler(handler)
    manager.on_llm_new_token("a")
    manager.remove_handler(handler)
    manager.on_llm_new_token("b")

    assert handler.events == [("token", "a")]


def test_logging_handler_accepts_all_events():
    handler = LoggingCallbackHandler()

    handler.on_llm_start({"_type": "openai", "model_name": "m"}, ["p"])
    handler.on_llm_new_token("x")
    handler.on_llm_end(LLMResult())
    handler.on_llm_error(RuntimeError("boom"))
