"""
Tests for logging_utils module.

Tests:
- Logger naming under the "alfcoach" hierarchy
- configure_logging handlers (console, file) and first-call-wins
- set_verbose
- LoggerAdapter verbosity and session tags
"""

import io
import logging
import sys
import os

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import logging_utils
from logging_utils import (
    ROOT_LOGGER_NAME,
    get_logger,
    configure_logging,
    set_verbose,
    LoggerAdapter,
)


@pytest.fixture
def fresh_root(monkeypatch):
    """Unconfigured "alfcoach" logger; handlers and level restored afterwards."""
    root = logging.getLogger(ROOT_LOGGER_NAME)
    saved_handlers = list(root.handlers)
    saved_level = root.level
    monkeypatch.setattr(logging_utils, "_configured", False)
    root.handlers = []

    yield root

    for handler in root.handlers:
        handler.close()
    root.handlers = saved_handlers
    root.setLevel(saved_level)


class TestGetLogger:

    def test_logger_name_prefixed(self):
        assert get_logger("workflow").name == "alfcoach.workflow"

    def test_prefixed_names_kept(self):
        assert get_logger("alfcoach.session").name == "alfcoach.session"
        assert get_logger("alfcoach").name == "alfcoach"

    def test_same_name_same_logger(self):
        assert get_logger("store") is get_logger("alfcoach.store")

    def test_no_handlers_attached(self):
        logger = get_logger("quiet_module")
        assert logger.handlers == []


class TestConfigureLogging:

    def test_console_handler(self, fresh_root):
        stream = io.StringIO()
        configure_logging(level=logging.WARNING, stream=stream)

        get_logger("workflow").warning("Stage skipped")
        get_logger("workflow").info("Not shown")

        output = stream.getvalue()
        assert "[WARNING] alfcoach.workflow: Stage skipped" in output
        assert "Not shown" not in output
        assert fresh_root.level == logging.WARNING

    def test_log_file(self, fresh_root, tmp_path):
        path = tmp_path / "coach.log"
        configure_logging(stream=io.StringIO(), log_file=str(path))

        get_logger("session").info("Saved to sessions/water.json")
        for handler in fresh_root.handlers:
            handler.flush()

        assert len(fresh_root.handlers) == 2
        assert "Saved to sessions/water.json" in path.read_text(encoding="utf-8")

    def test_only_first_call_counts(self, fresh_root, tmp_path):
        configure_logging(stream=io.StringIO())
        configure_logging(log_file=str(tmp_path / "late.log"))
        configure_logging(level=logging.DEBUG)

        assert len(fresh_root.handlers) == 1
        assert fresh_root.level == logging.INFO
        assert not (tmp_path / "late.log").exists()


class TestSetVerbose:

    def test_verbose_true(self, fresh_root):
        configure_logging(stream=io.StringIO())

        set_verbose(True)

        assert fresh_root.level == logging.DEBUG
        assert all(h.level == logging.DEBUG for h in fresh_root.handlers)

    def test_verbose_false(self, fresh_root):
        set_verbose(False)
        assert fresh_root.level == logging.INFO


class TestLoggerAdapter:

    def test_call_logs_info_when_verbose(self, caplog):
        adapter = LoggerAdapter(get_logger("adapter_loud"), verbose=True)

        with caplog.at_level(logging.INFO, logger="alfcoach.adapter_loud"):
            adapter("Stage complete")

        assert "Stage complete" in caplog.text

    def test_call_and_debug_silent_when_quiet(self, caplog):
        adapter = LoggerAdapter(get_logger("adapter_quiet"), verbose=False)

        with caplog.at_level(logging.DEBUG, logger="alfcoach.adapter_quiet"):
            adapter("Should not appear")
            adapter.debug("Nor this")

        assert caplog.text == ""

    @pytest.mark.parametrize("method,level", [
        ("info", logging.INFO),
        ("warning", logging.WARNING),
        ("error", logging.ERROR),
    ])
    def test_levels_log_regardless_of_verbose(self, caplog, method, level):
        adapter = LoggerAdapter(get_logger("adapter_levels"), verbose=False)

        with caplog.at_level(logging.DEBUG, logger="alfcoach.adapter_levels"):
            getattr(adapter, method)("Always shown")

        assert [r.levelno for r in caplog.records] == [level]

    def test_session_tag(self, caplog):
        adapter = LoggerAdapter(get_logger("adapter_tagged"), session_id="4f2a9c")

        with caplog.at_level(logging.INFO, logger="alfcoach.adapter_tagged"):
            adapter.info("Saved to sessions/water.json")

        assert caplog.records[0].getMessage() == "[4f2a9c] Saved to sessions/water.json"

    def test_no_tag_without_session(self, caplog):
        adapter = LoggerAdapter(get_logger("adapter_untagged"))

        with caplog.at_level(logging.INFO, logger="alfcoach.adapter_untagged"):
            adapter.warning("Plain")

        assert caplog.records[0].getMessage() == "Plain"
