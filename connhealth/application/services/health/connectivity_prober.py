from __future__ import annotations

import asyncio
from typing import Iterable, List, Optional, Sequence

from connhealth.core.logging.logger import StructuredLogger, get_logger
from connhealth.domain.enums import ConnectivityMethod, ErrorKind
from connhealth.domain.models import ConnectivityReport, ProbeOutcome, ReferenceEndpoint
from .fallback_policy import OptimisticFallbackPolicy
from .host_connectivity import HostConnectivity
from .probe_executor import ProbeExecutor


DEFAULT_REFERENCE_ENDPOINTS: tuple[ReferenceEndpoint, ...] = (
    ReferenceEndpoint("google", "https://www.google.com/favicon.ico", 2000),
    ReferenceEndpoint("jsdelivr", "https://cdn.jsdelivr.net/npm/axios@1.6.0/package.json", 2000),
    ReferenceEndpoint("github", "https://api.github.com", 3000),
)


class ConnectivityProber:
    """Combines the host flag with parallel probes of the reference endpoints."""

    def __init__(
        self,
        executor: ProbeExecutor,
        host: HostConnectivity,
        endpoints: Optional[Iterable[ReferenceEndpoint]] = None,
        *,
        fallback: Optional[OptimisticFallbackPolicy] = None,
        logger: Optional[StructuredLogger] = None,
    ) -> None:
        self.executor = executor
        self.host = host
        self.endpoints: Sequence[ReferenceEndpoint] = tuple(endpoints if endpoints is not None else DEFAULT_REFERENCE_ENDPOINTS)
        self.fallback = fallback or OptimisticFallbackPolicy()
        self.logger = logger or get_logger(__name__, service="connectivity")

    @property
    def max_duration_ms(self) -> int:
        """Upper bound of one check: the slowest endpoint timeout."""
        default = self.executor.timeout.probe_timeout_ms
        return max([e.timeout_ms or default for e in self.endpoints] or [0])

    async def check_connectivity(self, host_online: Optional[bool] = None) -> ConnectivityReport:
        """Probe the reference endpoints unless the host reports offline.

        Pass ``host_online`` when the caller has already read the flag so a
        single run acts on one consistent value.
        """
        if host_online is None:
            host_online = await self.host.check()
        if not host_online:
            self.logger.info(lambda: "host reports offline, skipping probes")
            return ConnectivityReport(
                host_reported_online=False,
                probed_count=0,
                succeeded_count=0,
                method=ConnectivityMethod.HOST_FLAG,
                note="host reports no network",
            )

        try:
            outcomes = await self._probe_all()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self.logger.warning(
                lambda: "connectivity probing failed, using host flag fallback",
                extra={"detail": f"{type(e).__name__}: {e}"},
            )
            return ConnectivityReport(
                host_reported_online=host_online,
                probed_count=0,
                succeeded_count=0,
                method=ConnectivityMethod.FALLBACK,
                note=f"probing failed: {e}",
            )

        succeeded = sum(1 for o in outcomes if o.succeeded)
        report = ConnectivityReport(
            host_reported_online=True,
            probed_count=len(outcomes),
            succeeded_count=succeeded,
            method=ConnectivityMethod.PROBE_AGGREGATE,
            outcomes=tuple(outcomes),
        )
        ratio = report.probe_success_ratio
        if ratio == 0:
            self.logger.warning(lambda: "all connectivity probes failed", extra={"detail": report.to_dict()})
        elif ratio is not None and ratio < 1:
            self.logger.info(lambda: "partial connectivity detected", extra={"detail": report.to_dict()})
        return report

    async def _probe_all(self) -> List[ProbeOutcome]:
        results = await asyncio.gather(
            *(self.executor.probe(e.url, e.timeout_ms) for e in self.endpoints),
            return_exceptions=True,
        )
        outcomes: List[ProbeOutcome] = []
        for endpoint, result in zip(self.endpoints, results):
            if isinstance(result, asyncio.CancelledError):
                raise result
            if isinstance(result, BaseException):
                result = ProbeOutcome(
                    target=endpoint.url,
                    succeeded=False,
                    error_kind=ErrorKind.OTHER,
                    note=f"{type(result).__name__}: {result}",
                )
            outcomes.append(self.fallback.apply_probe(result))
        return outcomes
