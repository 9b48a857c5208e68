from __future__ import annotations

from typing import Dict, Optional

import httpx

from connhealth.core.logging.logger import StructuredLogger, get_logger
from connhealth.domain.enums import ErrorKind
from connhealth.domain.models import BackendHealth
from .fallback_policy import OptimisticFallbackPolicy
from .probe_executor import ProbeExecutor


def validate_backend_url(url: Optional[str]) -> Optional[str]:
    """Return a reason string when ``url`` cannot be used, else None."""
    if url is None or not str(url).strip():
        return "no backend URL configured"
    try:
        parsed = httpx.URL(str(url).strip())
    except (httpx.InvalidURL, TypeError, ValueError):
        return "invalid backend URL format"
    if parsed.scheme not in ("http", "https") or not parsed.host:
        return "invalid backend URL format"
    return None


class BackendHealthChecker:
    """Single bounded probe of the application's own backend.

    Any answer below 500 (401 and 403 included) means the service is up.
    """

    def __init__(
        self,
        executor: ProbeExecutor,
        *,
        api_key: Optional[str] = None,
        health_path: str = "/rest/v1/",
        timeout_ms: Optional[int] = None,
        fallback: Optional[OptimisticFallbackPolicy] = None,
        logger: Optional[StructuredLogger] = None,
    ) -> None:
        self.executor = executor
        self.api_key = (api_key or "").strip() or None
        self.health_path = health_path or ""
        self.timeout_ms = int(timeout_ms or executor.timeout.backend_timeout_ms)
        self.fallback = fallback or OptimisticFallbackPolicy()
        self.logger = logger or get_logger(__name__, service="backend")

    def _headers(self) -> Dict[str, str]:
        if not self.api_key:
            return {}
        return {"apikey": self.api_key, "Authorization": f"Bearer {self.api_key}"}

    def health_url(self, url: str) -> str:
        base = url.strip().rstrip("/")
        path = self.health_path if self.health_path.startswith("/") or not self.health_path else f"/{self.health_path}"
        return f"{base}{path}"

    async def check_backend(self, url: Optional[str]) -> BackendHealth:
        problem = validate_backend_url(url)
        if problem is not None:
            self.logger.warning(lambda: "backend configuration error", extra={"detail": problem})
            return BackendHealth(reachable=False, error_kind=ErrorKind.OTHER, note=problem, misconfigured=True)

        target = self.health_url(str(url))
        outcome = await self.executor.probe(target, self.timeout_ms, headers=self._headers())
        if not outcome.succeeded:
            health = BackendHealth(
                reachable=False,
                error_kind=outcome.error_kind,
                note=outcome.note,
                latency_ms=outcome.latency_ms,
            )
            self.logger.warning(
                lambda: "backend unreachable",
                extra={"target": target, "error_kind": outcome.error_kind.value, "detail": outcome.note},
            )
            return self.fallback.apply_backend(health)

        status = outcome.http_status
        if status is not None and status >= 500:
            self.logger.warning(lambda: "backend answered with server error", extra={"target": target, "status_code": status})
            return BackendHealth(
                reachable=False,
                http_status=status,
                error_kind=ErrorKind.OTHER,
                note=f"http {status}",
                latency_ms=outcome.latency_ms,
            )

        self.logger.debug(lambda: "backend reachable", extra={"target": target, "status_code": status, "latency_ms": outcome.latency_ms})
        return BackendHealth(reachable=True, http_status=status, error_kind=ErrorKind.NONE, latency_ms=outcome.latency_ms)
