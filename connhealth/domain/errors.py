"""Error taxonomy shared by the checkers, the retry coordinator and call sites."""
from __future__ import annotations

from typing import Optional

from .enums import ErrorKind


class ConnectivityError(Exception):
    """Base for failures this subsystem knows how to classify."""
    kind: ErrorKind = ErrorKind.OTHER
    retryable: bool = False


class ProbeTimeoutError(ConnectivityError):
    kind = ErrorKind.TIMEOUT
    retryable = True


class TransportError(ConnectivityError):
    """DNS failure, refused or reset connection."""
    kind = ErrorKind.NETWORK
    retryable = True


class ConfigurationError(ConnectivityError):
    """Missing or malformed endpoint or policy value."""
    kind = ErrorKind.OTHER


class PolicyRejectionError(ConnectivityError):
    """Blocked by something other than the network (proxy, TLS policy)."""
    kind = ErrorKind.POLICY


class UnknownConnectivityError(ConnectivityError):
    kind = ErrorKind.OTHER


class ValidationError(ConnectivityError):
    pass


class AuthorizationError(ConnectivityError):
    pass


class NotFoundError(ConnectivityError):
    pass


class RetryError(Exception):
    """Raised by the retry coordinator once it stops trying.

    ``last_error`` is the original exception (also chained as ``__cause__``),
    ``kind`` its classification and ``attempts`` the number of calls made.
    """

    def __init__(self, last_error: BaseException, *, kind: ErrorKind, attempts: int, category: Optional[str] = None) -> None:
        self.last_error = last_error
        self.kind = kind
        self.attempts = attempts
        self.category = category
        self.message = str(last_error) or type(last_error).__name__
        super().__init__(self._describe())

    def _describe(self) -> str:
        return f"{self.message} (kind={self.kind.value}, attempts={self.attempts})"


class RetryExhaustedError(RetryError):
    def _describe(self) -> str:
        return f"gave up after {self.attempts} attempts: {self.message} (kind={self.kind.value})"


class RetryAbortedError(RetryError):
    """The failure was not retryable."""

    def _describe(self) -> str:
        return f"not retried after attempt {self.attempts}: {self.message} (kind={self.kind.value})"


class RetryCancelledError(RetryError):
    def _describe(self) -> str:
        return f"cancelled after {self.attempts} attempts: {self.message} (kind={self.kind.value})"
