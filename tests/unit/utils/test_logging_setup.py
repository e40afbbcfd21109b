"""Unit tests for structlog configuration."""

from __future__ import annotations

import json
import logging

import pytest
import structlog

from medi_assist.config.settings import LoggingSettings
from medi_assist.utils.logging import configure_logging


@pytest.fixture(autouse=True)
def _reset_logging():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    structlog.reset_defaults()
    root.handlers[:] = handlers
    root.setLevel(level)


def test_json_format_renders_json(capsys: pytest.CaptureFixture) -> None:
    configure_logging(LoggingSettings(log_level="INFO", log_format="json"))
    structlog.get_logger("test").info("flow_invoked", flow="chatFlow")
    line = capsys.readouterr().err.strip().splitlines()[-1]
    event = json.loads(line)
    assert event["event"] == "flow_invoked"
    assert event["flow"] == "chatFlow"
    assert event["level"] == "info"
    assert "timestamp" in event


def test_level_filters_lower_events(capsys: pytest.CaptureFixture) -> None:
    configure_logging(LoggingSettings(log_level="WARNING", log_format="json"))
    structlog.get_logger("test").info("hidden")
    assert "hidden" not in capsys.readouterr().err
    assert logging.getLogger().level == logging.WARNING
