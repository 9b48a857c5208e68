"""Shared test fixtures for connhealth tests."""
from __future__ import annotations

import asyncio
from typing import Callable, Dict, List, Optional

import httpx
import pytest

from connhealth.application.services.health import (
    BackendHealthChecker,
    ConnectivityProber,
    DiagnosticsOrchestrator,
    HostConnectivity,
    OptimisticFallbackPolicy,
    ProbeExecutor,
    TimeoutConfig,
)
from connhealth.domain.models import ReferenceEndpoint

BACKEND_URL = "https://backend.test"
REFERENCE_ENDPOINTS = (
    ReferenceEndpoint("a", "https://ref-a.test/favicon.ico"),
    ReferenceEndpoint("b", "https://ref-b.test/package.json"),
    ReferenceEndpoint("c", "https://ref-c.test/"),
)


class _Clock:
    def __init__(self) -> None:
        self.now = 0.0

    def monotonic(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += float(seconds)


class FakeNetwork:
    """Routes requests by host. A route is a status code, an exception, or a delay in seconds (float)."""

    def __init__(self, routes: Optional[Dict[str, object]] = None) -> None:
        self.routes: Dict[str, object] = dict(routes or {})
        self.requests: List[httpx.Request] = []

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get(request.url.host, 200)
        if isinstance(route, BaseException):
            raise route
        if isinstance(route, float):
            await asyncio.sleep(route)
            return httpx.Response(200)
        return httpx.Response(int(route))

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)

    def hosts(self) -> List[str]:
        return [r.url.host for r in self.requests]


@pytest.fixture
def clock() -> _Clock:
    return _Clock()


@pytest.fixture
def network() -> FakeNetwork:
    return FakeNetwork()


@pytest.fixture
def make_orchestrator(network: FakeNetwork) -> Callable[..., DiagnosticsOrchestrator]:
    def _make(
        *,
        host_online: bool = True,
        endpoints=REFERENCE_ENDPOINTS,
        backend_url: Optional[str] = BACKEND_URL,
        api_key: Optional[str] = None,
        fallback: Optional[OptimisticFallbackPolicy] = None,
        timeout: Optional[TimeoutConfig] = None,
    ) -> DiagnosticsOrchestrator:
        timeout = timeout or TimeoutConfig(probe_timeout_ms=500, backend_timeout_ms=500, orchestration_overhead_ms=200)
        executor = ProbeExecutor(timeout, transport=network.transport)
        host = HostConnectivity.static(host_online)
        prober = ConnectivityProber(executor, host, endpoints, fallback=fallback)
        backend = BackendHealthChecker(executor, api_key=api_key, fallback=fallback)
        return DiagnosticsOrchestrator(prober, backend, backend_url=backend_url)

    return _make
