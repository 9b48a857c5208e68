from __future__ import annotations

import os
from dataclasses import dataclass


def _int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except (TypeError, ValueError):
        return default


@dataclass(frozen=True, slots=True)
class TimeoutConfig:
    """Centralized timeout configuration with env overrides."""
    probe_timeout_ms: int = 2000
    backend_timeout_ms: int = 5000
    connect_timeout_ms: int = 1500
    orchestration_overhead_ms: int = 500

    @classmethod
    def from_env(cls) -> "TimeoutConfig":
        """Build TimeoutConfig from environment variables."""
        return cls(
            probe_timeout_ms=_int("CONNHEALTH_PROBE_TIMEOUT_MS", 2000),
            backend_timeout_ms=_int("CONNHEALTH_BACKEND_TIMEOUT_MS", 5000),
            connect_timeout_ms=_int("CONNHEALTH_CONNECT_TIMEOUT_MS", 1500),
            orchestration_overhead_ms=_int("CONNHEALTH_OVERHEAD_MS", 500),
        )

    def httpx_timeout_s(self, total_ms: int) -> tuple[float, float]:
        """(connect, total) in seconds; connect never exceeds the total."""
        total = max(1, int(total_ms)) / 1000.0
        return min(self.connect_timeout_ms / 1000.0, total), total
