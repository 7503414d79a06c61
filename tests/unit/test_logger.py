"""Tests for logging setup."""

import json

import pytest
import structlog

from internmatch import __version__
from internmatch.observability.logger import (
    configure_from_config,
    get_logger,
    log_context,
    setup_logging,
)


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    setup_logging()


def test_log_context_binds_and_clears():
    with log_context(profile_id="u_asha"):
        assert structlog.contextvars.get_contextvars()["profile_id"] == "u_asha"

    assert "profile_id" not in structlog.contextvars.get_contextvars()


def test_json_events_written_to_log_file(tmp_path):
    log_file = tmp_path / "logs" / "internmatch.log"
    configure_from_config({"logging": {"level": "INFO", "format": "json", "file": str(log_file)}})

    with log_context(profile_id="u_asha"):
        get_logger("tests.logger.file").info("ranking_complete", eligible=2)

    event = json.loads(log_file.read_text(encoding="utf-8").strip().splitlines()[-1])
    assert event["event"] == "ranking_complete"
    assert event["eligible"] == 2
    assert event["profile_id"] == "u_asha"
    assert event["app"] == "internmatch"
    assert event["version"] == __version__
    assert event["level"] == "info"


def test_level_filters_file_output(tmp_path):
    log_file = tmp_path / "internmatch.log"
    configure_from_config({"logging": {"level": "WARNING", "file": str(log_file)}})

    logger = get_logger("tests.logger.level")
    logger.info("dropped_event")
    logger.warning("kept_event")

    text = log_file.read_text(encoding="utf-8")
    assert "kept_event" in text
    assert "dropped_event" not in text
