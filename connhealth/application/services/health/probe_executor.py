from __future__ import annotations

import asyncio
import time
from typing import Dict, Mapping, Optional

import httpx

from connhealth.core.logging.logger import StructuredLogger, get_logger
from connhealth.domain.enums import ErrorKind
from connhealth.domain.models import ProbeOutcome
from .error_classifier import classify_exception
from .timeout_config import TimeoutConfig

_BASE_HEADERS = {"Cache-Control": "no-cache", "Pragma": "no-cache"}


class ProbeExecutor:
    """Issues one bounded HEAD request and turns whatever happens into a ProbeOutcome.

    Any completed response counts as reachable, whatever its status: the
    question is whether the target answered, not what it said.
    """

    def __init__(
        self,
        timeout: Optional[TimeoutConfig] = None,
        logger: Optional[StructuredLogger] = None,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.timeout = timeout or TimeoutConfig()
        self.logger = logger or get_logger(__name__, service="probe")
        self.transport = transport

    async def probe(
        self,
        target: str,
        timeout_ms: Optional[int] = None,
        *,
        headers: Optional[Mapping[str, str]] = None,
    ) -> ProbeOutcome:
        budget_ms = int(timeout_ms or self.timeout.probe_timeout_ms)
        start = time.perf_counter()
        self.logger.trace(lambda: "probe-start", extra={"target": target})
        try:
            status = await asyncio.wait_for(self._head(target, budget_ms, headers), timeout=budget_ms / 1000.0)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            return self._failed(target, e, start)

        latency_ms = _elapsed_ms(start)
        self.logger.debug(lambda: "probe-ok", extra={"target": target, "status_code": status, "latency_ms": latency_ms})
        return ProbeOutcome(target=target, succeeded=True, http_status=status, latency_ms=latency_ms)

    async def _head(self, target: str, budget_ms: int, headers: Optional[Mapping[str, str]]) -> int:
        connect_s, total_s = self.timeout.httpx_timeout_s(budget_ms)
        merged: Dict[str, str] = {**_BASE_HEADERS, **(headers or {})}
        async with httpx.AsyncClient(
            timeout=httpx.Timeout(total_s, connect=connect_s),
            headers=merged,
            follow_redirects=False,
            transport=self.transport,
        ) as client:
            resp = await client.head(target)
            return resp.status_code

    def _failed(self, target: str, exc: BaseException, start: float) -> ProbeOutcome:
        latency_ms = _elapsed_ms(start)
        category = classify_exception(exc)
        kind = category.kind
        note = "timeout" if kind is ErrorKind.TIMEOUT else (f"{type(exc).__name__}: {exc}".rstrip(": "))
        self.logger.debug(
            lambda: "probe-failed",
            extra={"target": target, "latency_ms": latency_ms, "error_kind": kind.value, "detail": note},
        )
        return ProbeOutcome(target=target, succeeded=False, error_kind=kind, note=note, latency_ms=latency_ms)


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000.0)
