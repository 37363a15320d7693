"""Tests for structured logging."""

import json
import logging
from datetime import date
from pathlib import Path

import pytest

from models.entities import GoldenWindowsQuery, NudgeUrgency
from services.logging_setup import (
    ROOT_LOGGER_NAME,
    ConsoleFormatter,
    JSONFormatter,
    bind_context,
    get_logger,
    setup_logging,
    shutdown_logging,
)
from services.settings import Settings


def make_record(context=None) -> logging.LogRecord:
    record = logging.LogRecord("clockalign.test", logging.INFO, __file__, 1, "Ranked %d slots", (3,), None)
    if context is not None:
        record.context = context
    return record


@pytest.fixture
def fresh_logging():
    """Drop the handlers installed by setup_logging after each test."""
    yield logging.getLogger(ROOT_LOGGER_NAME)
    shutdown_logging()


class TestFormatters:
    """Test log formatters."""

    def test_json_formatter_includes_context(self):
        data = json.loads(JSONFormatter().format(make_record({"participant_count": 2})))
        assert data["message"] == "Ranked 3 slots"
        assert data["level"] == "INFO"
        assert data["logger"] == "clockalign.test"
        assert data["context"] == {"participant_count": 2}
        assert data["timestamp"].endswith("Z")

    def test_json_formatter_serializes_enums_and_dates(self):
        record = make_record({"urgency": NudgeUrgency.STRONG, "reference_date": date(2024, 1, 15)})
        data = json.loads(JSONFormatter().format(record))
        assert data["context"] == {"urgency": "strong", "reference_date": "2024-01-15"}

    def test_json_formatter_omits_empty_context(self):
        assert "context" not in json.loads(JSONFormatter().format(make_record({})))

    def test_console_formatter_appends_context(self):
        line = ConsoleFormatter().format(make_record({"utc_hour": 14, "avg_quality": 87.50}))
        assert line.endswith("clockalign.test: Ranked 3 slots [utc_hour=14, avg_quality=87.5]")


class TestBindContext:
    """Test bound context fields."""

    def test_bound_and_call_context_are_merged(self, caplog: pytest.LogCaptureFixture):
        caplog.set_level(logging.INFO, logger=ROOT_LOGGER_NAME)
        log = bind_context(get_logger("test"), participant_count=3, utc_hour=9)
        log.info("Scored", extra={"context": {"utc_hour": 10}})
        assert caplog.records[-1].context == {"participant_count": 3, "utc_hour": 10}

    def test_engine_report_carries_request_context(
        self, caplog: pytest.LogCaptureFixture, engine, london, new_york, reference_date: date
    ):
        caplog.set_level(logging.INFO, logger=ROOT_LOGGER_NAME)
        engine.find_golden_windows([london, new_york], GoldenWindowsQuery(reference_date=reference_date))
        record = next(r for r in caplog.records if r.getMessage() == "Golden windows found")
        assert record.context == {"participant_count": 2, "reference_date": reference_date, "best_times": 3}


class TestSetupLogging:
    """Test logging initialization."""

    def test_get_logger_namespace(self):
        assert get_logger("services.best_times").name == "clockalign.services.best_times"

    def test_writes_json_file(self, fresh_logging, tmp_path: Path):
        setup_logging(Settings(log_dir=tmp_path), console_level=logging.WARNING)
        get_logger("test").info("hello", extra={"context": {"k": "v"}})
        for handler in fresh_logging.handlers:
            handler.flush()
        lines = (tmp_path / "clockalign.log").read_text(encoding="utf-8").splitlines()
        messages = [json.loads(line)["message"] for line in lines]
        assert messages == ["Logging initialized", "hello"]

    def test_console_only(self, fresh_logging, tmp_path: Path):
        setup_logging(Settings(log_dir=tmp_path / "logs"), log_to_file=False)
        assert not (tmp_path / "logs").exists()
        assert [type(h) for h in fresh_logging.handlers] == [logging.StreamHandler]

    def test_debug_setting_lowers_console_level(self, fresh_logging, tmp_path: Path):
        setup_logging(Settings(log_dir=tmp_path, debug=True), log_to_file=False)
        assert fresh_logging.handlers[0].level == logging.DEBUG

    def test_second_call_is_noop(self, fresh_logging, tmp_path: Path):
        first = setup_logging(Settings(log_dir=tmp_path))
        count = len(fresh_logging.handlers)
        assert setup_logging(Settings(log_dir=tmp_path)) is first
        assert len(fresh_logging.handlers) == count

    def test_shutdown_removes_handlers(self, tmp_path: Path):
        root = setup_logging(Settings(log_dir=tmp_path))
        shutdown_logging()
        assert root.handlers == []
