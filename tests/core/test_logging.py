"""
Tests for casebook.core.logging.

Tests verify:
- Rendered JSON lines carry ECS field names and service metadata
- LogContext binds and unbinds scoped fields
- Events below the configured level are suppressed
- A later configure_logging() call replaces the earlier level and stream
"""

import io
import json
import logging

import pytest

from casebook.core.logging import (
    LogContext,
    configure_logging,
    get_logger,
)


@pytest.fixture
def json_stream():
    stream = io.StringIO()
    configure_logging(level="INFO", json_format=True, service="casebook-test", stream=stream)
    return stream


def _lines(stream: io.StringIO) -> list[dict]:
    return [json.loads(line) for line in stream.getvalue().splitlines() if line.startswith("{")]


class TestJsonOutput:
    def test_ecs_fields(self, json_stream):
        get_logger("casebook.test").info("migration.applied", migration="001_init")

        record = _lines(json_stream)[-1]
        assert record["event"] == "migration.applied"
        assert record["migration"] == "001_init"
        assert record["log.level"] == "info"
        assert record["service.name"] == "casebook-test"
        assert "@timestamp" in record

    def test_debug_suppressed_at_info(self, json_stream):
        get_logger("casebook.test").debug("migration.skipped", migration="001_init")
        assert not any(r["event"] == "migration.skipped" for r in _lines(json_stream))


class TestReconfigure:
    def test_second_call_sets_level_and_stream(self):
        cli_stream, server_stream = io.StringIO(), io.StringIO()
        configure_logging(level="WARNING", json_format=True, stream=cli_stream)
        configure_logging(level="INFO", json_format=True, service="casebook-api", stream=server_stream)

        get_logger("casebook.core.migrations.runner").info("migration.applied", migration="001_init")

        assert logging.getLogger().level == logging.INFO
        assert [r["event"] for r in _lines(server_stream)] == ["migration.applied"]
        assert cli_stream.getvalue() == ""


class TestLogContext:
    def test_fields_bound_inside_block_only(self, json_stream):
        log = get_logger("casebook.test")
        with LogContext(run_id="abc123"):
            log.info("migration.run_started")
        log.info("migration.run_finished")

        by_event = {r["event"]: r for r in _lines(json_stream)}
        assert by_event["migration.run_started"]["run_id"] == "abc123"
        assert "run_id" not in by_event["migration.run_finished"]
