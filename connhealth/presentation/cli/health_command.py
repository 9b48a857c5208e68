from __future__ import annotations

import argparse
import json
from typing import Iterable, List, Optional

import httpx

from connhealth.application.services.health import (
    BackendHealthChecker,
    ConnectivityProber,
    ConnectivityWatcher,
    DiagnosticsOrchestrator,
    HostConnectivity,
    OptimisticFallbackPolicy,
    ProbeExecutor,
    RetryPolicy,
    TimeoutConfig,
)
from connhealth.config import Settings, parse_endpoints, settings as default_settings
from connhealth.core.logging.dedup import LogDeduplicator
from connhealth.core.logging.logger import StructuredLogger, get_logger
from connhealth.domain.enums import Status
from connhealth.domain.models import DiagnosticsReport


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="connhealth", description="Network and backend connectivity diagnostics")
    sub = parser.add_subparsers(dest="command")

    diag = sub.add_parser("diagnose", help="run one diagnostics pass")
    diag.add_argument("--backend-url", default=None)
    diag.add_argument("--endpoints", default=None, help="comma separated name=url reference endpoints")
    diag.add_argument("--json", action="store_true")

    probe = sub.add_parser("probe", help="probe a single URL")
    probe.add_argument("url")
    probe.add_argument("--timeout-ms", type=int, default=None)
    probe.add_argument("--json", action="store_true")

    watch = sub.add_parser("watch", help="re-check periodically and report status changes")
    watch.add_argument("--backend-url", default=None)
    watch.add_argument("--interval-s", type=float, default=None)
    watch.add_argument("--iterations", type=int, default=None)
    watch.add_argument("--json", action="store_true")
    return parser


class HealthCommand:
    """Wires the connectivity components from settings and runs one CLI action."""

    def __init__(
        self,
        *,
        config: Settings = default_settings,
        deduplicator: Optional[LogDeduplicator] = None,
        host: Optional[HostConnectivity] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        print_fn=print,
    ) -> None:
        self.config = config
        self.timeout = TimeoutConfig.from_env()
        self.retry_policy = RetryPolicy.from_env()
        self.fallback = OptimisticFallbackPolicy(assume_reachable=config.ASSUME_REACHABLE)
        self._owns_dedup = deduplicator is None
        self.deduplicator = deduplicator or LogDeduplicator(
            sweep_interval_s=config.DEDUP_SWEEP_INTERVAL_S,
            retention_s=config.DEDUP_RETENTION_S,
        )
        self.logger: StructuredLogger = get_logger(
            __name__, service="health", deduplicator=self.deduplicator, windows_ms=config.DEDUP_WINDOWS_MS
        )
        self.host = host or HostConnectivity(logger=self.logger)
        self.transport = transport
        self._print = print_fn

    def build_orchestrator(self, backend_url: Optional[str] = None, endpoints: Optional[str] = None) -> DiagnosticsOrchestrator:
        executor = ProbeExecutor(self.timeout, self.logger, transport=self.transport)
        refs = parse_endpoints(endpoints) if endpoints else self.config.reference_endpoints()
        prober = ConnectivityProber(executor, self.host, refs, fallback=self.fallback, logger=self.logger)
        backend = BackendHealthChecker(
            executor,
            api_key=self.config.BACKEND_API_KEY,
            health_path=self.config.BACKEND_HEALTH_PATH,
            fallback=self.fallback,
            logger=self.logger,
        )
        return DiagnosticsOrchestrator(
            prober,
            backend,
            backend_url=backend_url or self.config.BACKEND_URL,
            logger=self.logger,
        )

    async def execute(self, argv: List[str]) -> int:
        if not argv or (argv[0].startswith("-") and argv[0] not in ("-h", "--help")):
            argv = ["diagnose", *argv]
        args = build_parser().parse_args(argv)
        command = args.command
        if self._owns_dedup:
            self.deduplicator.start()
        try:
            if command == "probe":
                return await self._probe(args)
            if command == "watch":
                return await self._watch(args)
            return await self._diagnose(args)
        finally:
            if self._owns_dedup:
                self.deduplicator.stop()

    async def _diagnose(self, args: argparse.Namespace) -> int:
        orchestrator = self.build_orchestrator(args.backend_url, args.endpoints)
        report = await orchestrator.run_diagnostics()
        self._render(report, args.json)
        return report.status.exit_code

    async def _probe(self, args: argparse.Namespace) -> int:
        executor = ProbeExecutor(self.timeout, self.logger, transport=self.transport)
        outcome = await executor.probe(args.url, args.timeout_ms)
        if args.json:
            self._print(json.dumps(outcome.to_dict(), separators=(",", ":"), ensure_ascii=False))
        elif outcome.succeeded:
            self._print(f"- {outcome.target}: reachable (status={outcome.http_status}, {outcome.latency_ms}ms)")
        else:
            self._print(f"- {outcome.target}: unreachable ({outcome.error_kind.value}: {outcome.note})")
        return 0 if outcome.succeeded else 1

    async def _watch(self, args: argparse.Namespace) -> int:
        orchestrator = self.build_orchestrator(args.backend_url)
        interval = args.interval_s if args.interval_s is not None else self.config.WATCH_INTERVAL_S
        watcher = ConnectivityWatcher(orchestrator, interval_s=interval, policy=self.retry_policy, logger=self.logger)
        watcher.on_change(lambda _previous, report: self._render(report, args.json))
        last = await watcher.run(iterations=args.iterations)
        return last.status.exit_code if last else 0

    def _render(self, report: DiagnosticsReport, as_json: bool) -> None:
        if as_json:
            self._print(json.dumps(report.to_dict(), separators=(",", ":"), ensure_ascii=False))
            return
        conn = report.connectivity
        ratio = conn.probe_success_ratio
        self._print(f"Status: {report.status.value} ({report.duration_ms}ms)")
        self._print(
            f"- network: host={'online' if conn.host_reported_online else 'offline'} "
            f"probes={conn.succeeded_count}/{conn.probed_count} "
            f"ratio={'n/a' if ratio is None else f'{ratio:.2f}'} method={conn.method.value}"
        )
        for o in conn.outcomes:
            state = f"ok ({o.http_status})" if o.succeeded else f"failed ({o.error_kind.value})"
            self._print(f"    {o.target}: {state}")
        backend = report.backend
        if backend.reachable:
            self._print(f"- backend: reachable (status={backend.http_status})")
        else:
            self._print(f"- backend: unreachable ({backend.note or 'unknown'})")
        for issue in report.issues:
            self._print(f"! {issue}")
        if report.status is Status.OFFLINE:
            self._print("Check the network connection and try again.")


async def run(argv: Optional[Iterable[str]] = None) -> int:
    cmd = HealthCommand()
    return await cmd.execute(list(argv or []))
