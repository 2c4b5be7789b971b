from __future__ import annotations

import json
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

import pytest

from consolebus.bus import EventBus
from consolebus.logging import configure_logging, log_event


@pytest.fixture
def root_handlers():
    root = logging.getLogger()
    before = list(root.handlers)
    level = root.level
    yield root
    for handler in list(root.handlers):
        if handler not in before:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)


def test_configure_logging_writes_rotating_file(root_handlers: logging.Logger, tmp_path: Path) -> None:
    configure_logging(tmp_path / "logs", level="debug")
    configure_logging(tmp_path / "logs", level="debug")

    file_handlers = [h for h in root_handlers.handlers if isinstance(h, RotatingFileHandler)]
    assert len(file_handlers) == 1
    assert root_handlers.level == logging.DEBUG

    logging.getLogger("consolebus.test").info("hello")
    file_handlers[0].flush()
    assert "hello" in (tmp_path / "logs" / "consolebus.log").read_text()


def test_configure_logging_console_only(root_handlers: logging.Logger) -> None:
    configure_logging()

    assert not any(isinstance(h, RotatingFileHandler) for h in root_handlers.handlers)


def test_log_event_emits_json(caplog: pytest.LogCaptureFixture) -> None:
    logger = logging.getLogger("consolebus.test")
    with caplog.at_level(logging.INFO, logger="consolebus.test"):
        log_event(logger, "event.buffered", key="ready", pending=2, handler=object())

    record = json.loads(caplog.records[-1].getMessage())
    assert record["event"] == "event.buffered"
    assert record["pending"] == 2
    assert record["handler"].startswith("<object")


def test_trace_records_buffer_and_replay(caplog: pytest.LogCaptureFixture) -> None:
    bus = EventBus(trace=True)

    with caplog.at_level(logging.DEBUG, logger="consolebus.bus"):
        bus.trigger("ready", 1)
        bus.listen("ready", lambda _: None)

    events = [json.loads(r.getMessage())["event"] for r in caplog.records if r.name == "consolebus.bus"]
    assert events == ["event.buffered", "event.replay", "event.dispatch"]


def test_bootstrap_configures_logging_and_default_bus(root_handlers: logging.Logger, tmp_path: Path) -> None:
    from consolebus.bus import get_bus
    from consolebus import bootstrap
    from consolebus.settings import BusSettings

    settings = BusSettings(_env_file=None, log_dir=tmp_path, log_file_name="bus.log")
    bus = bootstrap(settings)

    assert bus is get_bus()
    assert (tmp_path / "bus.log").exists()
