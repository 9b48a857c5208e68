from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

DedupKey = Tuple[str, str]


@dataclass(slots=True)
class DedupEntry:
    key: DedupKey
    last_emitted_at: float


class LogDeduplicator:
    """Time-windowed suppression of repeated ``(severity, message)`` pairs.

    Construct one per process and hand it to the loggers that need it.
    Nothing runs until ``start()``; ``stop()`` halts the sweep thread and
    clears every entry. Entries older than ``retention_s`` are evicted by the
    sweep regardless of the window used when they were recorded.
    """

    def __init__(
        self,
        *,
        sweep_interval_s: float = 60.0,
        retention_s: float = 300.0,
        time_fn: Callable[[], float] = time.monotonic,
    ) -> None:
        self.sweep_interval_s = max(0.01, float(sweep_interval_s))
        self.retention_s = max(0.0, float(retention_s))
        self._time_fn = time_fn
        self._lock = threading.Lock()
        self._entries: Dict[DedupKey, DedupEntry] = {}
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.sweeps = 0

    def should_emit(self, message: str, severity: str = "info", window_ms: int = 5000) -> bool:
        key = (str(severity).lower(), str(message))
        now = self._time_fn()
        window_s = max(0, int(window_ms)) / 1000.0
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and (now - entry.last_emitted_at) < window_s:
                return False
            if entry is None:
                self._entries[key] = DedupEntry(key=key, last_emitted_at=now)
            else:
                entry.last_emitted_at = now
            return True

    def sweep(self) -> int:
        """Evict entries past the retention ceiling; returns how many were removed."""
        now = self._time_fn()
        with self._lock:
            stale = [k for k, e in self._entries.items() if (now - e.last_emitted_at) > self.retention_s]
            for k in stale:
                del self._entries[k]
            self.sweeps += 1
        return len(stale)

    def start(self) -> "LogDeduplicator":
        with self._lock:
            if self._thread is not None and self._thread.is_alive():
                return self
            self._stop_event.clear()
            self._thread = threading.Thread(target=self._run, name="log-dedup-sweep", daemon=True)
            self._thread.start()
        return self

    def stop(self) -> None:
        self._stop_event.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=self.sweep_interval_s + 1.0)
        with self._lock:
            self._thread = None
            self._entries.clear()

    @property
    def running(self) -> bool:
        thread = self._thread
        return thread is not None and thread.is_alive()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __enter__(self) -> "LogDeduplicator":
        return self.start()

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.stop()
        return False

    def _run(self) -> None:
        while not self._stop_event.wait(self.sweep_interval_s):
            self.sweep()
