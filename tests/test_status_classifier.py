"""Tri-state verdict rules."""

import itertools

from connhealth.application.services.health import classify
from connhealth.application.services.health.status_classifier import (
    ISSUE_ALL_PROBES_FAILED,
    ISSUE_HOST_OFFLINE,
    ISSUE_PARTIAL_REACHABILITY,
)
from connhealth.domain.enums import ConnectivityMethod, ErrorKind, Status
from connhealth.domain.models import BackendHealth, ConnectivityReport

UP = BackendHealth(reachable=True, http_status=200)
DOWN = BackendHealth(reachable=False, error_kind=ErrorKind.TIMEOUT, note="backend check timed out")


def _conn(online: bool = True, probed: int = 3, ok: int = 3) -> ConnectivityReport:
    method = ConnectivityMethod.PROBE_AGGREGATE if online else ConnectivityMethod.HOST_FLAG
    return ConnectivityReport(host_reported_online=online, probed_count=probed, succeeded_count=ok, method=method)


def test_host_offline_wins_over_everything() -> None:
    health = classify(_conn(online=False, probed=0, ok=0), UP)
    assert health.status is Status.OFFLINE
    assert health.issues == (ISSUE_HOST_OFFLINE,)


def test_all_probes_failed_is_offline_even_with_backend_up() -> None:
    health = classify(_conn(ok=0), UP)
    assert health.status is Status.OFFLINE
    assert health.issues == (ISSUE_ALL_PROBES_FAILED,)


def test_partial_reachability_is_degraded() -> None:
    health = classify(_conn(ok=2), UP)
    assert health.status is Status.DEGRADED
    assert health.issues == (ISSUE_PARTIAL_REACHABILITY,)


def test_backend_down_on_healthy_network_is_degraded() -> None:
    health = classify(_conn(), DOWN)
    assert health.status is Status.DEGRADED
    assert health.issues == ("backend unreachable: backend check timed out",)


def test_network_issue_keeps_its_status_and_lists_the_backend_too() -> None:
    health = classify(_conn(ok=0), DOWN)
    assert health.status is Status.OFFLINE
    assert health.issues[0] == ISSUE_ALL_PROBES_FAILED
    assert health.issues[1].startswith("backend unreachable")


def test_failed_probe_stage_is_degraded_with_its_note() -> None:
    conn = ConnectivityReport(True, 0, 0, ConnectivityMethod.FALLBACK, note="connectivity check timed out")

    health = classify(conn, UP)

    assert health.status is Status.DEGRADED
    assert health.issues == ("network reachability unverified: connectivity check timed out",)


def test_failed_probe_stage_lists_backend_after_it() -> None:
    conn = ConnectivityReport(True, 0, 0, ConnectivityMethod.FALLBACK)

    health = classify(conn, DOWN)

    assert health.status is Status.DEGRADED
    assert health.issues == ("network reachability unverified", "backend unreachable: backend check timed out")


def test_empty_endpoint_set_with_backend_up_is_online() -> None:
    conn = ConnectivityReport(True, 0, 0, ConnectivityMethod.PROBE_AGGREGATE)
    assert classify(conn, UP).status is Status.ONLINE
    assert classify(conn, UP).issues == ()


def test_classification_is_pure() -> None:
    conn = _conn(ok=1)
    assert classify(conn, DOWN) == classify(conn, DOWN)


def test_offline_only_when_host_offline_or_every_probe_failed() -> None:
    for online, (probed, ok), backend in itertools.product(
        (True, False), ((0, 0), (3, 0), (3, 1), (3, 3)), (UP, DOWN)
    ):
        conn = _conn(online=online, probed=probed, ok=ok)
        health = classify(conn, backend)
        if health.status is Status.OFFLINE:
            assert (not online) or conn.probe_success_ratio == 0
        if health.status is Status.ONLINE:
            assert health.issues == ()
        assert health.status.exit_code in (0, 1, 2)
