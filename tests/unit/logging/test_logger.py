# tests/unit/logging/test_logger.py — v1
"""Tests for logging/logger.py — logger factory and formatters."""

from __future__ import annotations

import json
import logging

from recipeflow.logging.context import clear_context, set_execution_context, set_node_context
from recipeflow.logging.logger import JsonFormatter, TextFormatter, get_logger, setup_logging


def _record(msg: str, **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="test", level=logging.INFO, pathname="", lineno=0,
        msg=msg, args=(), exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJsonFormatter:
    def setup_method(self):
        clear_context()

    def teardown_method(self):
        clear_context()

    def test_format_basic(self):
        parsed = json.loads(JsonFormatter().format(_record("Hello")))
        assert parsed["level"] == "INFO"
        assert parsed["message"] == "Hello"
        assert "timestamp" in parsed
        assert "context" not in parsed

    def test_format_with_context(self):
        set_execution_context("exec1", "recipe1")
        set_node_context("n1")
        parsed = json.loads(JsonFormatter().format(_record("test msg")))
        assert parsed["context"]["execution_id"] == "exec1"
        assert parsed["context"]["node_id"] == "n1"

    def test_format_with_data(self):
        parsed = json.loads(JsonFormatter().format(_record("x", data={"attempt": 2})))
        assert parsed["data"] == {"attempt": 2}


class TestTextFormatter:
    def setup_method(self):
        clear_context()

    def teardown_method(self):
        clear_context()

    def test_format_basic(self):
        output = TextFormatter().format(_record("Hello text"))
        assert "Hello text" in output
        assert "INFO" in output

    def test_format_with_node(self):
        set_node_context("make_story", attempt=3)
        output = TextFormatter().format(_record("retrying"))
        assert "(make_story#3)" in output


class TestGetLogger:
    def test_returns_logger(self):
        logger = get_logger("test_module")
        assert logger.name == "recipeflow.test_module"


class TestSetupLogging:
    def test_setup_json(self):
        setup_logging(level="DEBUG", log_format="json")
        root = logging.getLogger("recipeflow")
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, JsonFormatter)

    def test_setup_text(self):
        setup_logging(level="INFO", log_format="text")
        root = logging.getLogger("recipeflow")
        assert root.level == logging.INFO
        assert isinstance(root.handlers[0].formatter, TextFormatter)

    def test_setup_with_file(self, tmp_path):
        setup_logging(log_file=str(tmp_path / "logs" / "run.log"))
        root = logging.getLogger("recipeflow")
        assert len(root.handlers) == 2
        for handler in root.handlers[1:]:
            handler.close()
        root.handlers.clear()
