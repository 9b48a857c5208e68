"""Formatter output and the JSONL file sink."""

import json
import logging

import pytest

from connhealth.core.logging import bootstrap_logging, get_logger, log_context, shutdown_logging
from connhealth.core.logging.context import get_context
from connhealth.core.logging.formatter import JSONFormatter
from connhealth.core.logging.levels import LogLevel, to_level


@pytest.fixture
def restore_root():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    shutdown_logging()
    root.handlers[:] = handlers
    root.setLevel(level)


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord("connhealth.test", logging.WARNING, __file__, 10, "backend unreachable", None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_includes_known_fields_and_context() -> None:
    with log_context(run_id="abc123"):
        line = JSONFormatter().format(_record(service="backend", target="https://backend.test", error_kind="timeout"))
    payload = json.loads(line)

    assert payload["message"] == "backend unreachable"
    assert payload["level"] == "WARNING"
    assert payload["service"] == "backend"
    assert payload["target"] == "https://backend.test"
    assert payload["error_kind"] == "timeout"
    assert payload["context"] == {"run_id": "abc123"}
    assert "attempt" not in payload


def test_custom_levels() -> None:
    assert to_level("WARN") == logging.WARNING
    assert to_level("trace") == LogLevel.TRACE
    assert LogLevel.TRACE < logging.DEBUG < logging.INFO < LogLevel.SUCCESS < logging.WARNING


def test_bootstrap_writes_jsonl(tmp_path, restore_root) -> None:
    bootstrap_logging(level="DEBUG", log_dir=tmp_path, log_file_name="test.jsonl", console=False)
    logger = get_logger("connhealth.test.file", service="probe")

    logger.info("probe-ok", extra={"target": "https://ref-a.test/", "status_code": 200})
    logger.success("done")
    shutdown_logging()

    lines = (tmp_path / "test.jsonl").read_text(encoding="utf-8").splitlines()
    entries = [json.loads(line) for line in lines]
    assert [e["message"] for e in entries] == ["probe-ok", "done"]
    assert entries[0]["status_code"] == 200
    assert entries[0]["service"] == "probe"
    assert entries[1]["level"] == "SUCCESS"


def test_log_context_nests_and_restores() -> None:
    with log_context(run_id="outer", skipped=None):
        with log_context(target="https://ref-a.test/") as inner:
            assert inner == {"run_id": "outer", "target": "https://ref-a.test/"}
        assert get_context() == {"run_id": "outer"}
    assert get_context() == {}
