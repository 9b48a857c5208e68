"""Fusion of host, probe and backend evidence into a tri-state verdict.

Network-layer evidence decides first; the backend can only pull an
otherwise healthy network down to ``degraded``. ``offline`` requires either
the host saying so or every probe failing. A probe stage that could not run
at all (``method=fallback``) leaves reachability unverified: ``degraded``.
"""

from __future__ import annotations

from typing import List

from connhealth.domain.enums import ConnectivityMethod, Status
from connhealth.domain.models import BackendHealth, ConnectivityReport, HealthStatus

ISSUE_HOST_OFFLINE = "host reports no network"
ISSUE_ALL_PROBES_FAILED = "all reachability probes failed"
ISSUE_PARTIAL_REACHABILITY = "partial network reachability"
ISSUE_REACHABILITY_UNVERIFIED = "network reachability unverified"
ISSUE_BACKEND_UNREACHABLE = "backend unreachable"


def backend_issue(backend: BackendHealth) -> str:
    return f"{ISSUE_BACKEND_UNREACHABLE}: {backend.note}" if backend.note else ISSUE_BACKEND_UNREACHABLE


def unverified_issue(connectivity: ConnectivityReport) -> str:
    note = connectivity.note
    return f"{ISSUE_REACHABILITY_UNVERIFIED}: {note}" if note else ISSUE_REACHABILITY_UNVERIFIED


def classify(connectivity: ConnectivityReport, backend: BackendHealth) -> HealthStatus:
    if not connectivity.host_reported_online:
        return HealthStatus(Status.OFFLINE, (ISSUE_HOST_OFFLINE,))

    issues: List[str] = []
    status = Status.ONLINE
    ratio = connectivity.probe_success_ratio
    if ratio is not None and ratio == 0:
        status = Status.OFFLINE
        issues.append(ISSUE_ALL_PROBES_FAILED)
    elif ratio is not None and ratio < 1:
        status = Status.DEGRADED
        issues.append(ISSUE_PARTIAL_REACHABILITY)
    elif connectivity.method is ConnectivityMethod.FALLBACK:
        # The probe stage itself failed: no evidence either way, never offline.
        status = Status.DEGRADED
        issues.append(unverified_issue(connectivity))

    if not backend.reachable:
        if status is Status.ONLINE:
            status = Status.DEGRADED
        issues.append(backend_issue(backend))

    return HealthStatus(status, tuple(issues))
