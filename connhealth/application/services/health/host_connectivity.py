from __future__ import annotations

import asyncio
import socket
import threading
from typing import Callable, List, Optional, Tuple

from connhealth.core.logging.logger import StructuredLogger, get_logger


HostFlagSource = Callable[[], bool]
Listener = Callable[[], None]


def route_available(address: Tuple[str, int] = ("192.0.2.1", 53)) -> bool:
    """True if the OS has a route to a non-local address.

    Connecting a UDP socket only consults the routing table; no packet is
    sent. With no usable interface the connect fails with ENETUNREACH.
    """
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
            sock.connect(address)
            local_ip = sock.getsockname()[0]
    except OSError:
        return False
    return not local_ip.startswith("127.") and local_ip != "0.0.0.0"


class StaticHostFlag:
    def __init__(self, online: bool = True) -> None:
        self.online = bool(online)

    def __call__(self) -> bool:
        return self.online


class HostConnectivity:
    """Host-reported connectivity flag with online/offline subscribers.

    Subscribers are called synchronously on the thread that observed the
    change and must return quickly.
    """

    def __init__(self, source: Optional[HostFlagSource] = None, *, logger: Optional[StructuredLogger] = None) -> None:
        self._source = source or route_available
        self.logger = logger or get_logger(__name__, service="host")
        self._lock = threading.Lock()
        self._online: List[Listener] = []
        self._offline: List[Listener] = []
        self._last: Optional[bool] = None

    @classmethod
    def static(cls, online: bool, **kwargs) -> "HostConnectivity":
        """A flag whose value only changes through set_online()."""
        return cls(StaticHostFlag(online), **kwargs)

    def is_online(self) -> bool:
        try:
            value = bool(self._source())
        except Exception as e:
            self.logger.warning(lambda: "host flag source failed, assuming online", extra={"detail": str(e)})
            value = True
        self._observe(value)
        return value

    async def check(self) -> bool:
        """is_online() on a worker thread; the default source touches a socket."""
        return await asyncio.to_thread(self.is_online)

    def set_online(self, value: bool) -> None:
        """Push a flag value from the hosting application."""
        if isinstance(self._source, StaticHostFlag):
            self._source.online = bool(value)
        self._observe(bool(value))

    @property
    def last_known(self) -> Optional[bool]:
        return self._last

    def on_online(self, listener: Listener) -> Callable[[], None]:
        with self._lock:
            self._online.append(listener)
        return lambda: self.remove(listener)

    def on_offline(self, listener: Listener) -> Callable[[], None]:
        with self._lock:
            self._offline.append(listener)
        return lambda: self.remove(listener)

    def remove(self, listener: Listener) -> None:
        with self._lock:
            for registry in (self._online, self._offline):
                while listener in registry:
                    registry.remove(listener)

    def _observe(self, value: bool) -> None:
        with self._lock:
            previous = self._last
            self._last = value
            if previous is None or previous == value:
                return
            listeners = list(self._online if value else self._offline)
        if value:
            self.logger.info(lambda: "network connection restored")
        else:
            self.logger.warning(lambda: "network connection lost")
        for listener in listeners:
            try:
                listener()
            except Exception as e:
                self.logger.error(lambda: "connectivity listener failed", extra={"detail": f"{type(e).__name__}: {e}"})
