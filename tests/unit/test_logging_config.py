"""
Unit tests for structlog configuration.
"""

import logging

import pytest
import structlog

from completion_core.logging_config import add_component_context, configure_logging


@pytest.fixture(autouse=True)
def restore_logging():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    structlog.reset_defaults()


def test_component_added():
    event = add_component_context(None, "info", {"event": "x"})
    assert event["component"] == "completion-core"


def test_component_not_overwritten():
    event = add_component_context(None, "info", {"event": "x", "component": "custom"})
    assert event["component"] == "custom"


def test_configure_sets_levels():
    configure_logging("DEBUG", "development")

    assert logging.getLogger().level == logging.DEBUG
    assert logging.getLogger("httpx").level == logging.WARNING


def test_production_uses_json_renderer():
    configure_logging("INFO", "production")

    formatter = logging.getLogger().handlers[0].formatter
    assert isinstance(formatter, structlog.stdlib.ProcessorFormatter)
    assert isinstance(formatter.processors[-1], structlog.processors.JSONRenderer)
