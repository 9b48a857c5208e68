from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple

from .enums import ConnectivityMethod, ErrorKind, Status


@dataclass(frozen=True, slots=True)
class ReferenceEndpoint:
    """External URL probed to judge general network reachability."""
    name: str
    url: str
    timeout_ms: Optional[int] = None


@dataclass(frozen=True, slots=True)
class ProbeOutcome:
    """Result of one reachability probe against a single target."""
    target: str
    succeeded: bool
    http_status: Optional[int] = None
    error_kind: ErrorKind = ErrorKind.NONE
    note: Optional[str] = None
    latency_ms: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "target": self.target,
            "succeeded": self.succeeded,
            "http_status": self.http_status,
            "error_kind": self.error_kind.value,
            "note": self.note,
            "latency_ms": self.latency_ms,
        }


@dataclass(frozen=True, slots=True)
class ConnectivityReport:
    """Aggregate of the host flag and the reference-endpoint probes."""
    host_reported_online: bool
    probed_count: int
    succeeded_count: int
    method: ConnectivityMethod
    outcomes: Tuple[ProbeOutcome, ...] = ()
    note: Optional[str] = None

    @property
    def probe_success_ratio(self) -> Optional[float]:
        """succeeded/probed, or None when nothing was probed."""
        if self.probed_count == 0:
            return None
        return self.succeeded_count / self.probed_count

    def to_dict(self) -> Dict[str, Any]:
        return {
            "host_reported_online": self.host_reported_online,
            "probe_success_ratio": self.probe_success_ratio,
            "probed_count": self.probed_count,
            "succeeded_count": self.succeeded_count,
            "method": self.method.value,
            "note": self.note,
            "outcomes": [o.to_dict() for o in self.outcomes],
        }


@dataclass(frozen=True, slots=True)
class BackendHealth:
    reachable: bool
    http_status: Optional[int] = None
    error_kind: Optional[ErrorKind] = None
    note: Optional[str] = None
    misconfigured: bool = False
    latency_ms: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "reachable": self.reachable,
            "http_status": self.http_status,
            "error_kind": self.error_kind.value if self.error_kind else None,
            "note": self.note,
            "misconfigured": self.misconfigured,
            "latency_ms": self.latency_ms,
        }


@dataclass(frozen=True, slots=True)
class HealthStatus:
    status: Status
    issues: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {"status": self.status.value, "issues": list(self.issues)}


@dataclass(frozen=True, slots=True)
class DiagnosticsReport:
    """One diagnostics run. Built fresh per call and owned by the caller."""
    started_at: datetime
    duration_ms: int
    connectivity: ConnectivityReport
    backend: BackendHealth
    health: HealthStatus
    meta: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "meta", MappingProxyType(dict(self.meta)))

    @property
    def status(self) -> Status:
        return self.health.status

    @property
    def issues(self) -> Tuple[str, ...]:
        return self.health.issues

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.started_at.isoformat(),
            "duration_ms": self.duration_ms,
            "status": self.health.status.value,
            "issues": list(self.health.issues),
            "connectivity": self.connectivity.to_dict(),
            "backend": self.backend.to_dict(),
            "meta": dict(self.meta),
        }
