"""Application services root exports."""
from .health import ConnectivityWatcher, DiagnosticsOrchestrator, RetryCoordinator

__all__ = [
    "ConnectivityWatcher",
    "DiagnosticsOrchestrator",
    "RetryCoordinator",
]
