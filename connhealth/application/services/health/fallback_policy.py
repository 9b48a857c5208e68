from __future__ import annotations

import os
from dataclasses import dataclass, replace

from connhealth.domain.enums import ErrorKind
from connhealth.domain.models import BackendHealth, ProbeOutcome

_ASSUMABLE = (ErrorKind.NETWORK, ErrorKind.POLICY)


@dataclass(frozen=True, slots=True)
class OptimisticFallbackPolicy:
    """Whether network/policy failures are reported as reachable.

    Off by default. When on, the same rule applies to every probe and to the
    backend check, in every deployment: a failure of kind ``network`` or
    ``policy`` is reported as a success carrying an ``assumed reachable``
    note. Timeouts and configuration errors are never assumed away.
    """
    assume_reachable: bool = False

    @classmethod
    def from_env(cls) -> "OptimisticFallbackPolicy":
        raw = os.getenv("CONNHEALTH_ASSUME_REACHABLE", "false").strip().lower()
        return cls(assume_reachable=raw in ("1", "true", "yes", "on"))

    def applies_to(self, kind: ErrorKind | None) -> bool:
        return self.assume_reachable and kind in _ASSUMABLE

    def apply_probe(self, outcome: ProbeOutcome) -> ProbeOutcome:
        if outcome.succeeded or not self.applies_to(outcome.error_kind):
            return outcome
        return replace(outcome, succeeded=True, note=_note(outcome.error_kind, outcome.note))

    def apply_backend(self, health: BackendHealth) -> BackendHealth:
        if health.reachable or health.misconfigured or not self.applies_to(health.error_kind):
            return health
        return replace(health, reachable=True, note=_note(health.error_kind, health.note))


def _note(kind: ErrorKind | None, original: str | None) -> str:
    label = kind.value if kind else "unknown"
    return f"assumed reachable ({label}): {original}" if original else f"assumed reachable ({label})"
