"""Unit tests for the time-windowed log deduplicator."""

import time

from connhealth.core.logging.dedup import LogDeduplicator


def test_second_call_within_window_is_suppressed_then_allowed_after(clock) -> None:
    dedup = LogDeduplicator(time_fn=clock.monotonic)

    assert dedup.should_emit("x", "warn", 5000) is True
    clock.advance(4.5)
    assert dedup.should_emit("x", "warn", 5000) is False

    clock.advance(0.5)
    assert dedup.should_emit("x", "warn", 5000) is True


def test_window_is_measured_from_last_allowed_emission(clock) -> None:
    dedup = LogDeduplicator(time_fn=clock.monotonic)

    assert dedup.should_emit("x", "warn", 5000) is True
    clock.advance(3)
    assert dedup.should_emit("x", "warn", 5000) is False
    clock.advance(2)
    # 5s after the first emission; the suppressed call did not refresh it.
    assert dedup.should_emit("x", "warn", 5000) is True
    clock.advance(4)
    assert dedup.should_emit("x", "warn", 5000) is False


def test_keys_are_severity_and_message(clock) -> None:
    dedup = LogDeduplicator(time_fn=clock.monotonic)

    assert dedup.should_emit("x", "warn") is True
    assert dedup.should_emit("x", "error") is True
    assert dedup.should_emit("y", "warn") is True
    assert dedup.should_emit("x", "warn") is False
    assert len(dedup) == 3


def test_sweep_evicts_entries_older_than_retention(clock) -> None:
    dedup = LogDeduplicator(retention_s=300, time_fn=clock.monotonic)
    dedup.should_emit("old", "info")
    clock.advance(200)
    dedup.should_emit("new", "info")
    clock.advance(101)

    removed = dedup.sweep()

    assert removed == 1
    assert len(dedup) == 1
    # Evicted key starts fresh.
    assert dedup.should_emit("old", "info") is True


def test_construction_has_no_background_thread() -> None:
    dedup = LogDeduplicator(sweep_interval_s=0.01)
    assert dedup.running is False
    time.sleep(0.05)
    assert dedup.sweeps == 0


def test_stop_halts_sweeps_and_clears_entries() -> None:
    dedup = LogDeduplicator(sweep_interval_s=0.01)
    dedup.start()
    dedup.should_emit("x", "warn", 5000)
    time.sleep(0.1)
    assert dedup.sweeps > 0
    assert dedup.running is True

    dedup.stop()
    sweeps_at_stop = dedup.sweeps
    time.sleep(0.1)

    assert dedup.running is False
    assert dedup.sweeps == sweeps_at_stop
    assert len(dedup) == 0


def test_start_is_idempotent_and_restartable() -> None:
    dedup = LogDeduplicator(sweep_interval_s=0.01)
    with dedup:
        thread = dedup._thread
        dedup.start()
        assert dedup._thread is thread
    assert dedup.running is False

    dedup.start()
    assert dedup.running is True
    dedup.stop()
