"""Domain layer - value objects, enums and the error taxonomy."""
from .enums import ConnectivityMethod, ErrorKind, Status
from .models import (
    BackendHealth,
    ConnectivityReport,
    DiagnosticsReport,
    HealthStatus,
    ProbeOutcome,
    ReferenceEndpoint,
)
from .errors import (
    AuthorizationError,
    ConfigurationError,
    ConnectivityError,
    NotFoundError,
    PolicyRejectionError,
    ProbeTimeoutError,
    RetryAbortedError,
    RetryCancelledError,
    RetryError,
    RetryExhaustedError,
    TransportError,
    UnknownConnectivityError,
    ValidationError,
)

__all__ = [
    "ConnectivityMethod",
    "ErrorKind",
    "Status",
    "BackendHealth",
    "ConnectivityReport",
    "DiagnosticsReport",
    "HealthStatus",
    "ProbeOutcome",
    "ReferenceEndpoint",
    "AuthorizationError",
    "ConfigurationError",
    "ConnectivityError",
    "NotFoundError",
    "PolicyRejectionError",
    "ProbeTimeoutError",
    "RetryAbortedError",
    "RetryCancelledError",
    "RetryError",
    "RetryExhaustedError",
    "TransportError",
    "UnknownConnectivityError",
    "ValidationError",
]
