"""Tests for log configuration."""

import json
import logging
from pathlib import Path

import pytest
import structlog

from procscope import log


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in root.handlers:
        handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
    structlog.reset_defaults()


def test_events_written_as_json(tmp_path: Path, restore_logging):
    """Test log events land in the file as JSON lines."""
    path = tmp_path / "state" / "procscope.log"
    log.configure(path, level="info")

    log.get_logger("procscope.test").info("process_switched", old_pid=1, new_pid=2)
    for handler in logging.getLogger().handlers:
        handler.flush()

    event = json.loads(path.read_text().splitlines()[-1])
    assert event["event"] == "process_switched"
    assert event["module"] == "procscope.test"
    assert event["new_pid"] == 2
    assert event["level"] == "info"
    assert "ts" in event


def test_level_filters(tmp_path: Path, restore_logging):
    """Test events below the configured level are dropped."""
    path = tmp_path / "procscope.log"
    log.configure(path, level="warning")

    logger = log.get_logger()
    logger.info("ignored")
    logger.warning("kept")
    for handler in logging.getLogger().handlers:
        handler.flush()

    events = [json.loads(line)["event"] for line in path.read_text().splitlines()]
    assert events == ["kept"]
