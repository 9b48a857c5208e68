"""DedupedLogger routes every record through the deduplicator."""

import logging

from connhealth.core.logging.dedup import LogDeduplicator
from connhealth.core.logging.logger import DedupedLogger, StructuredLogger, get_logger


def test_get_logger_returns_deduped_logger_when_given_a_deduplicator() -> None:
    dedup = LogDeduplicator()
    assert isinstance(get_logger("connhealth.test.plain"), StructuredLogger)
    assert not isinstance(get_logger("connhealth.test.plain"), DedupedLogger)
    assert isinstance(get_logger("connhealth.test.dedup", deduplicator=dedup), DedupedLogger)


def test_repeated_warning_is_emitted_once_per_window(caplog, clock) -> None:
    dedup = LogDeduplicator(time_fn=clock.monotonic)
    logger = get_logger("connhealth.test.dedup", service="test", deduplicator=dedup)
    caplog.set_level(logging.DEBUG, logger="connhealth.test.dedup")

    for attempt in range(5):
        logger.warning("backend unreachable", extra={"attempt": attempt})
    clock.advance(31)
    logger.warning("backend unreachable")

    records = [r for r in caplog.records if r.name == "connhealth.test.dedup"]
    assert [r.getMessage() for r in records] == ["backend unreachable", "backend unreachable"]
    assert records[0].attempt == 0
    assert records[0].service == "test"


def test_windows_differ_per_level_and_can_be_overridden(caplog, clock) -> None:
    dedup = LogDeduplicator(time_fn=clock.monotonic)
    logger = get_logger("connhealth.test.levels", deduplicator=dedup, windows_ms={"info": 1000})
    caplog.set_level(logging.DEBUG, logger="connhealth.test.levels")

    logger.info("probe ok")
    logger.error("probe ok")
    clock.advance(2)
    logger.info("probe ok")
    logger.error("probe ok")

    levels = [r.levelname for r in caplog.records if r.name == "connhealth.test.levels"]
    assert levels == ["INFO", "ERROR", "INFO"]


def test_disabled_level_does_not_consume_the_window(caplog, clock) -> None:
    dedup = LogDeduplicator(time_fn=clock.monotonic)
    logger = get_logger("connhealth.test.disabled", deduplicator=dedup)
    caplog.set_level(logging.WARNING, logger="connhealth.test.disabled")

    logger.debug("noisy")
    assert len(dedup) == 0


def test_lazy_message_is_resolved_before_dedup(caplog, clock) -> None:
    dedup = LogDeduplicator(time_fn=clock.monotonic)
    logger = get_logger("connhealth.test.lazy", deduplicator=dedup)
    caplog.set_level(logging.DEBUG, logger="connhealth.test.lazy")

    logger.info(lambda: "computed")
    logger.info("computed")

    assert [r.getMessage() for r in caplog.records if r.name == "connhealth.test.lazy"] == ["computed"]
