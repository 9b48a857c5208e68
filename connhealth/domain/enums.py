from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Failure class attached to a probe or backend outcome."""
    NONE = "none"
    TIMEOUT = "timeout"
    NETWORK = "network"
    POLICY = "policy"
    OTHER = "other"


class ConnectivityMethod(str, Enum):
    HOST_FLAG = "host-flag"
    PROBE_AGGREGATE = "probe-aggregate"
    FALLBACK = "fallback"


class Status(str, Enum):
    """Tri-state health verdict."""
    ONLINE = "online"
    DEGRADED = "degraded"
    OFFLINE = "offline"

    @property
    def exit_code(self) -> int:
        return {Status.ONLINE: 0, Status.DEGRADED: 1, Status.OFFLINE: 2}[self]
