"""Unit tests — structured logging setup and context binding."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest
import structlog

from groundstation.logging import (
    _inject_context_vars,
    bind_item_context,
    clear_item_context,
    configure_logging,
    get_logger,
)


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers = handlers
    root.setLevel(level)
    structlog.reset_defaults()


@pytest.mark.unit
class TestContextVars:
    def test_bound_context_is_injected(self) -> None:
        bind_item_context(item_name="Failures to MQTT", item_kind="failures_to_mqtt")
        try:
            event = _inject_context_vars(None, "info", {"event": "x"})
        finally:
            clear_item_context()
        assert event["item_name"] == "Failures to MQTT"
        assert event["item_kind"] == "failures_to_mqtt"

    def test_cleared_context_is_not_injected(self) -> None:
        bind_item_context(item_kind="send_to_mqtt")
        clear_item_context()
        assert _inject_context_vars(None, "info", {"event": "x"}) == {"event": "x"}

    def test_explicit_keys_win(self) -> None:
        bind_item_context(item_kind="send_to_mqtt")
        try:
            event = _inject_context_vars(None, "info", {"event": "x", "item_kind": "explicit"})
        finally:
            clear_item_context()
        assert event["item_kind"] == "explicit"


@pytest.mark.unit
class TestConfigureLogging:
    def test_json_file_output(self, tmp_path: Path, restore_logging) -> None:
        log_file = tmp_path / "groundstation.log"
        configure_logging(level="info", format="json", log_file=str(log_file))

        bind_item_context(item_kind="failures_to_email")
        try:
            get_logger("tests.logging").info("email_sent", host="smtp.example.org")
        finally:
            clear_item_context()

        record = json.loads(log_file.read_text().strip().splitlines()[-1])
        assert record["event"] == "email_sent"
        assert record["host"] == "smtp.example.org"
        assert record["item_kind"] == "failures_to_email"
        assert record["level"] == "info"

    def test_level_filters_debug(self, tmp_path: Path, restore_logging) -> None:
        log_file = tmp_path / "groundstation.log"
        configure_logging(level="warning", format="json", log_file=str(log_file))
        get_logger("tests.logging.level").info("ignored")
        assert log_file.read_text() == ""

    def test_noisy_loggers_quietened(self, restore_logging) -> None:
        configure_logging(level="debug")
        assert logging.getLogger("paho").level == logging.WARNING
        assert logging.getLogger("httpx").level == logging.WARNING
