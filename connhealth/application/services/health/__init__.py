from .timeout_config import TimeoutConfig
from .error_classifier import ErrorCategory, classify_exception, is_retryable
from .retry_policy import RetryCoordinator, RetryPolicy, with_retry
from .fallback_policy import OptimisticFallbackPolicy
from .host_connectivity import HostConnectivity, StaticHostFlag, route_available
from .probe_executor import ProbeExecutor
from .connectivity_prober import DEFAULT_REFERENCE_ENDPOINTS, ConnectivityProber
from .backend_checker import BackendHealthChecker, validate_backend_url
from .status_classifier import classify
from .diagnostics import DiagnosticsOrchestrator
from .watcher import ConnectivityWatcher, OfflineStatusError

__all__ = [
    "TimeoutConfig",
    "ErrorCategory",
    "classify_exception",
    "is_retryable",
    "RetryCoordinator",
    "RetryPolicy",
    "with_retry",
    "OptimisticFallbackPolicy",
    "HostConnectivity",
    "StaticHostFlag",
    "route_available",
    "ProbeExecutor",
    "DEFAULT_REFERENCE_ENDPOINTS",
    "ConnectivityProber",
    "BackendHealthChecker",
    "validate_backend_url",
    "classify",
    "DiagnosticsOrchestrator",
    "ConnectivityWatcher",
    "OfflineStatusError",
]
