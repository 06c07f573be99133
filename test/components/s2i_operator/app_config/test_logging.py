"""Tests for the logging configuration."""

import json
import logging as ll

import pytest

from s2i_operator.app_config import logging
from s2i_operator.errors import errors


def test_loggers_are_below_the_app_logger():
    assert logging.getLogger("trigger.core").name == "s2i_operator.trigger.core"
    assert logging.getLogger("s2i_operator.s2i.core").name == "s2i_operator.s2i.core"


def test_config_from_env(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("TEST_LOG_ROOT_LEVEL", "error")
    monkeypatch.setenv("TEST_LOG_APP_LEVEL", "DEBUG")
    monkeypatch.setenv("TEST_LOG_FORMAT_STYLE", "json")
    monkeypatch.setenv("TEST_WARNING_LOGGING", "sanic.access, kr8s")
    cfg = logging.Config.from_env(prefix="TEST_")
    assert cfg.root_level == ll.ERROR
    assert cfg.app_level == ll.DEBUG
    assert cfg.format_style == logging.LogFormatStyle.json
    assert cfg.override_levels[ll.WARNING] == {"sanic.access", "kr8s"}


def test_unknown_level_is_a_configuration_error(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("TEST_LOG_APP_LEVEL", "chatty")
    with pytest.raises(errors.ConfigurationError):
        logging.Config.from_env(prefix="TEST_")


def test_update_override_levels():
    cfg = logging.Config(override_levels={ll.INFO: {"a"}})
    cfg.update_override_levels({ll.INFO: {"b"}, ll.DEBUG: {"c"}})
    assert cfg.override_levels == {ll.INFO: {"a", "b"}, ll.DEBUG: {"c"}}


def test_request_id_is_added_to_messages(caplog: pytest.LogCaptureFixture):
    logger = logging.getLogger("test_request_id")
    adapter = logging.with_request_id(logger, "req-42")
    with caplog.at_level(ll.INFO, logger=logger.name):
        adapter.info("handled push")
    assert "[req-42] handled push" in caplog.messages
    assert caplog.records[-1].request_id == "req-42"


def test_json_format_includes_extra_fields():
    record = ll.LogRecord("s2i_operator.trigger", ll.ERROR, "core.py", 12, "failed %s", ("push",), None)
    record.request_id = "req-7"
    doc = json.loads(logging.LogFormatStyle.json.to_formatter().format(record))
    assert doc["message"] == "failed push"
    assert doc["level"] == "ERROR"
    assert doc["logger"] == "s2i_operator.trigger"
    assert doc["request_id"] == "req-7"
