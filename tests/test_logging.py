"""Tests for structlog configuration."""

from __future__ import annotations

import json

import pytest
import structlog

from durable_cache.logging import configure_logging, get_logger


@pytest.fixture(autouse=True)
def _restore_structlog():
    yield
    structlog.reset_defaults()


def test_json_output(capsys):
    configure_logging(log_level="INFO", log_format="json")
    get_logger("durable_cache.test", collection="sessions").info("sweep_complete", deleted=3)

    line = capsys.readouterr().err.strip().splitlines()[-1]
    record = json.loads(line)
    assert record["event"] == "sweep_complete"
    assert record["deleted"] == 3
    assert record["collection"] == "sessions"
    assert record["level"] == "info"


def test_level_filtering(capsys):
    configure_logging(log_level="WARNING", log_format="json")
    log = get_logger("durable_cache.test")
    log.info("hidden")
    log.warning("shown")

    err = capsys.readouterr().err
    assert "hidden" not in err
    assert "shown" in err
