# tests/unit/logging/test_unit_logging.py - v2
"""Tests for logging/context.py and logging/logger.py."""

from __future__ import annotations

import json
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

import pytest

from pmdesigner.logging.context import (
    clear_context,
    get_context,
    run_context,
    stage_context,
)
from pmdesigner.logging.logger import (
    ROOT_LOGGER,
    JsonFormatter,
    TextFormatter,
    parse_size,
    setup_logging,
)


def _record(msg: str = "hello") -> logging.LogRecord:
    return logging.LogRecord(
        name="pmdesigner.test", level=logging.INFO, pathname=__file__,
        lineno=1, msg=msg, args=(), exc_info=None,
    )


class TestLogContext:
    def setup_method(self):
        clear_context()

    def teardown_method(self):
        clear_context()

    def test_initial_state(self):
        assert get_context().as_dict() == {}

    def test_run_context_is_scoped(self):
        with run_context("run42"):
            assert get_context().run_id == "run42"
            with run_context("inner"):
                assert get_context().run_id == "inner"
            assert get_context().run_id == "run42"
        assert get_context().run_id is None

    def test_stage_context_is_scoped(self):
        with stage_context("planner", "gemini-2.5-flash"):
            ctx = get_context()
            assert ctx.stage == "planner"
            assert ctx.model == "gemini-2.5-flash"
        assert get_context().stage is None
        assert get_context().model is None

    def test_nested_stage_restores_outer(self):
        with stage_context("outer"):
            with stage_context("inner"):
                assert get_context().stage == "inner"
            assert get_context().stage == "outer"


class TestFormatters:
    def teardown_method(self):
        clear_context()

    def test_json_includes_context(self):
        with run_context("r1"), stage_context("imagery"):
            line = JsonFormatter().format(_record())
        entry = json.loads(line)
        assert entry["message"] == "hello"
        assert entry["level"] == "INFO"
        assert entry["context"] == {"run_id": "r1", "stage": "imagery"}

    def test_json_keeps_non_ascii(self):
        assert "產品" in JsonFormatter().format(_record("產品"))

    def test_text_format(self):
        with run_context("r2"), stage_context("director"):
            line = TextFormatter().format(_record())
        assert "[director]" in line
        assert "(r2)" in line
        assert line.endswith("- hello")


class TestParseSize:
    @pytest.mark.parametrize(
        "value,expected",
        [("10MB", 10 * 1024**2), ("512kb", 512 * 1024), ("1 GB", 1024**3)],
    )
    def test_valid(self, value, expected):
        assert parse_size(value) == expected

    def test_invalid(self):
        with pytest.raises(ValueError):
            parse_size("ten megs")


class TestSetupLogging:
    def teardown_method(self):
        logging.getLogger(ROOT_LOGGER).handlers.clear()

    def test_reinit_does_not_duplicate(self):
        setup_logging()
        logger = setup_logging(level="DEBUG", log_format="text")
        assert len(logger.handlers) == 1
        assert logger.level == logging.DEBUG
        assert isinstance(logger.handlers[0].formatter, TextFormatter)

    def test_file_handler(self, tmp_path: Path):
        log_file = tmp_path / "logs" / "pm.log"
        logger = setup_logging(log_file=log_file, rotation="1MB", retention=3)
        file_handlers = [h for h in logger.handlers if isinstance(h, RotatingFileHandler)]
        assert len(file_handlers) == 1
        assert file_handlers[0].maxBytes == 1024**2
        assert file_handlers[0].backupCount == 3
        assert log_file.parent.is_dir()
        for h in file_handlers:
            h.close()
