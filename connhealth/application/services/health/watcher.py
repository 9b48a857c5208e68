from __future__ import annotations

import asyncio
from typing import Callable, List, Optional

from connhealth.core.logging.logger import StructuredLogger, get_logger
from connhealth.domain.enums import Status
from connhealth.domain.errors import RetryError, TransportError
from connhealth.domain.models import DiagnosticsReport
from .diagnostics import DiagnosticsOrchestrator
from .retry_policy import RetryCoordinator, RetryPolicy


StatusListener = Callable[[Optional[Status], DiagnosticsReport], None]


class OfflineStatusError(TransportError):
    """An offline verdict, raised so the retry coordinator re-checks with backoff."""

    def __init__(self, report: DiagnosticsReport) -> None:
        super().__init__("offline: " + ", ".join(report.issues))
        self.report = report


class ConnectivityWatcher:
    """Periodic re-check of connectivity.

    Each round runs diagnostics under the retry coordinator, so an offline
    verdict is re-checked with backoff before it is reported. Listeners are
    called only when the status changes between rounds.
    """

    def __init__(
        self,
        orchestrator: DiagnosticsOrchestrator,
        *,
        interval_s: float = 30.0,
        retry: Optional[RetryCoordinator] = None,
        policy: Optional[RetryPolicy] = None,
        logger: Optional[StructuredLogger] = None,
    ) -> None:
        self.orchestrator = orchestrator
        self.interval_s = max(0.0, float(interval_s))
        self.logger = logger or get_logger(__name__, service="watcher")
        self.retry = retry or RetryCoordinator(policy, logger=self.logger)
        self.policy = policy
        self.last_status: Optional[Status] = None
        self._listeners: List[StatusListener] = []

    def on_change(self, listener: StatusListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    async def check_once(self) -> DiagnosticsReport:
        async def _attempt() -> DiagnosticsReport:
            report = await self.orchestrator.run_diagnostics()
            if report.status is Status.OFFLINE:
                raise OfflineStatusError(report)
            return report

        try:
            report = await self.retry.run(_attempt, self.policy, context={"operation": "connectivity-recheck"})
        except RetryError as e:
            if not isinstance(e.last_error, OfflineStatusError):
                raise
            report = e.last_error.report
        self._publish(report)
        return report

    async def run(self, *, iterations: Optional[int] = None, stop_event: Optional[asyncio.Event] = None) -> Optional[DiagnosticsReport]:
        """Check every ``interval_s`` until stopped; returns the last report."""
        stop = stop_event or asyncio.Event()
        last: Optional[DiagnosticsReport] = None
        done = 0
        while not stop.is_set():
            last = await self.check_once()
            done += 1
            if iterations is not None and done >= iterations:
                break
            try:
                await asyncio.wait_for(stop.wait(), timeout=self.interval_s)
            except asyncio.TimeoutError:
                pass
        return last

    def _publish(self, report: DiagnosticsReport) -> None:
        previous = self.last_status
        self.last_status = report.status
        if previous == report.status:
            return
        if previous is not None:
            self.logger.info(
                lambda: f"connectivity status changed: {previous.value} -> {report.status.value}",
                extra={"status": report.status.value, "detail": list(report.issues)},
            )
        for listener in list(self._listeners):
            try:
                listener(previous, report)
            except Exception as e:
                self.logger.error(lambda: "status listener failed", extra={"detail": f"{type(e).__name__}: {e}"})
