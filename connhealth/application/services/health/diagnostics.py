from __future__ import annotations

import asyncio
import time
from datetime import datetime, timezone
from typing import Callable, Optional

from connhealth.core.logging.context import log_context, new_run_id
from connhealth.core.logging.logger import StructuredLogger, get_logger
from connhealth.domain.enums import ConnectivityMethod, ErrorKind, Status
from connhealth.domain.models import BackendHealth, ConnectivityReport, DiagnosticsReport, HealthStatus
from .backend_checker import BackendHealthChecker
from .connectivity_prober import ConnectivityProber
from .status_classifier import classify


class DiagnosticsOrchestrator:
    """Runs the connectivity prober and the backend checker side by side.

    A failure or hang in one sub-check is replaced by a degraded stand-in
    report; the run as a whole always finishes within ``deadline_ms``.
    """

    def __init__(
        self,
        prober: ConnectivityProber,
        backend_checker: BackendHealthChecker,
        *,
        backend_url: Optional[str] = None,
        overhead_ms: Optional[int] = None,
        logger: Optional[StructuredLogger] = None,
        now_fn: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self.prober = prober
        self.backend_checker = backend_checker
        self.backend_url = backend_url
        self.overhead_ms = int(overhead_ms if overhead_ms is not None else prober.executor.timeout.orchestration_overhead_ms)
        self.logger = logger or get_logger(__name__, service="diagnostics")
        self._now = now_fn

    @property
    def deadline_ms(self) -> int:
        return max(self.prober.max_duration_ms, self.backend_checker.timeout_ms) + self.overhead_ms

    async def run_diagnostics(self, backend_url: Optional[str] = None) -> DiagnosticsReport:
        url = backend_url if backend_url is not None else self.backend_url
        run_id = new_run_id()
        started_at = self._now()
        start = time.perf_counter()
        with log_context(run_id=run_id):
            self.logger.info(lambda: "running connectivity diagnostics")
            host_online = await self.prober.host.check()

            conn_task = asyncio.ensure_future(self.prober.check_connectivity(host_online))
            backend_task: Optional[asyncio.Future] = None
            if host_online:
                backend_task = asyncio.ensure_future(self.backend_checker.check_backend(url))
            tasks = {t for t in (conn_task, backend_task) if t is not None}

            try:
                _, pending = await asyncio.wait(tasks, timeout=self.deadline_ms / 1000.0)
            except asyncio.CancelledError:
                for t in tasks:
                    t.cancel()
                raise
            for t in pending:
                t.cancel()
            if pending:
                self.logger.warning(lambda: "diagnostics deadline reached, cancelling pending checks",
                                    extra={"detail": {"pending": len(pending), "deadline_ms": self.deadline_ms}})
                await asyncio.gather(*pending, return_exceptions=True)

            connectivity = self._connectivity_result(conn_task, host_online)
            backend = self._backend_result(backend_task)
            health = classify(connectivity, backend)
            duration_ms = int((time.perf_counter() - start) * 1000.0)
            report = DiagnosticsReport(
                started_at=started_at,
                duration_ms=duration_ms,
                connectivity=connectivity,
                backend=backend,
                health=health,
                meta={"run_id": run_id, "backend_url": _shorten(url), "backend_checked": backend_task is not None},
            )
            log = self.logger.success if health.status is Status.ONLINE else self.logger.warning
            log(lambda: f"connectivity diagnostics completed: {health.status.value}",
                extra={"status": health.status.value, "latency_ms": duration_ms, "detail": list(health.issues)})
            return report

    async def get_status(self, backend_url: Optional[str] = None) -> HealthStatus:
        return (await self.run_diagnostics(backend_url)).health

    def _connectivity_result(self, task: asyncio.Future, host_online: bool) -> ConnectivityReport:
        if task.cancelled():
            note = "connectivity check timed out"
        elif task.exception() is not None:
            exc = task.exception()
            note = f"connectivity check failed: {type(exc).__name__}: {exc}"
            self.logger.error(lambda: "connectivity check raised", extra={"detail": note})
        else:
            return task.result()
        return ConnectivityReport(
            host_reported_online=host_online,
            probed_count=0,
            succeeded_count=0,
            method=ConnectivityMethod.FALLBACK,
            note=note,
        )

    def _backend_result(self, task: Optional[asyncio.Future]) -> BackendHealth:
        if task is None:
            return BackendHealth(reachable=False, error_kind=ErrorKind.NETWORK, note="not checked: host reports no network")
        if task.cancelled():
            return BackendHealth(reachable=False, error_kind=ErrorKind.TIMEOUT, note="backend check timed out")
        exc = task.exception()
        if exc is not None:
            self.logger.error(lambda: "backend check raised", extra={"detail": f"{type(exc).__name__}: {exc}"})
            return BackendHealth(reachable=False, error_kind=ErrorKind.OTHER, note=f"backend check failed: {exc}")
        return task.result()


def _shorten(url: Optional[str], limit: int = 50) -> Optional[str]:
    if url is None:
        return None
    return url if len(url) <= limit else url[:limit] + "..."
