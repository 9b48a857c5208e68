"""
Connectivity Resilience & Diagnostics
=====================================

Decides whether the network and the application backend are reachable and
keeps backend call sites resilient while they are not.

Features:
- Parallel reachability probes fused with the host connectivity flag
- Backend health check that tells "rejected" apart from "unreachable"
- Tri-state status (online / degraded / offline) biased toward availability
- Retry coordinator with bounded exponential backoff for transient failures
- Time-windowed log deduplication for sustained outages
"""

__version__ = "1.0.0"

from .domain import (
    BackendHealth,
    ConnectivityReport,
    DiagnosticsReport,
    HealthStatus,
    ProbeOutcome,
    ReferenceEndpoint,
    Status,
)
from .application.services.health import (
    BackendHealthChecker,
    ConnectivityProber,
    ConnectivityWatcher,
    DiagnosticsOrchestrator,
    HostConnectivity,
    OptimisticFallbackPolicy,
    ProbeExecutor,
    RetryCoordinator,
    RetryPolicy,
    classify,
    with_retry,
)
from .core.logging import DedupedLogger, LogDeduplicator, get_logger

__all__ = [
    '__version__',

    # Domain
    'BackendHealth',
    'ConnectivityReport',
    'DiagnosticsReport',
    'HealthStatus',
    'ProbeOutcome',
    'ReferenceEndpoint',
    'Status',

    # Services
    'BackendHealthChecker',
    'ConnectivityProber',
    'ConnectivityWatcher',
    'DiagnosticsOrchestrator',
    'HostConnectivity',
    'OptimisticFallbackPolicy',
    'ProbeExecutor',
    'RetryCoordinator',
    'RetryPolicy',
    'classify',
    'with_retry',

    # Logging
    'DedupedLogger',
    'LogDeduplicator',
    'get_logger',
]
