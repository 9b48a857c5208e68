"""Classification of failures into retry buckets and outcome error kinds."""

from __future__ import annotations

import asyncio
import socket
import ssl
from enum import Enum
from typing import Iterator, Optional

import httpx

from connhealth.domain.enums import ErrorKind
from connhealth.domain.errors import (
    AuthorizationError,
    ConfigurationError,
    NotFoundError,
    PolicyRejectionError,
    ProbeTimeoutError,
    RetryError,
    TransportError,
    ValidationError,
)


class ErrorCategory(str, Enum):
    TIMEOUT = "TIMEOUT"
    NETWORK = "NETWORK"
    UNAVAILABLE = "UNAVAILABLE"
    POLICY = "POLICY"
    CONFIGURATION = "CONFIGURATION"
    AUTH = "AUTH"
    PERMISSION = "PERMISSION"
    NOT_FOUND = "NOT_FOUND"
    VALIDATION = "VALIDATION"
    CONSTRAINT = "CONSTRAINT"
    UNKNOWN = "UNKNOWN"

    @property
    def retryable(self) -> bool:
        return self in _RETRYABLE

    @property
    def kind(self) -> ErrorKind:
        return _KINDS.get(self, ErrorKind.OTHER)


_RETRYABLE = frozenset({ErrorCategory.TIMEOUT, ErrorCategory.NETWORK, ErrorCategory.UNAVAILABLE})

_KINDS = {
    ErrorCategory.TIMEOUT: ErrorKind.TIMEOUT,
    ErrorCategory.NETWORK: ErrorKind.NETWORK,
    ErrorCategory.UNAVAILABLE: ErrorKind.NETWORK,
    ErrorCategory.POLICY: ErrorKind.POLICY,
}

_TYPED = (
    (ProbeTimeoutError, ErrorCategory.TIMEOUT),
    (TransportError, ErrorCategory.NETWORK),
    (ConfigurationError, ErrorCategory.CONFIGURATION),
    (PolicyRejectionError, ErrorCategory.POLICY),
    (AuthorizationError, ErrorCategory.AUTH),
    (NotFoundError, ErrorCategory.NOT_FOUND),
    (ValidationError, ErrorCategory.VALIDATION),
)

_MARKERS = (
    (ErrorCategory.TIMEOUT, ("timeout", "timed out")),
    (ErrorCategory.NETWORK, ("network", "connection reset", "connection refused", "connection aborted",
                             "econnreset", "econnrefused", "failed to fetch", "name or service not known")),
    (ErrorCategory.POLICY, ("certificate verify failed", "cors", "content security policy")),
    (ErrorCategory.AUTH, ("unauthorized", "session expired", "invalid api key", "jwt expired")),
    (ErrorCategory.PERMISSION, ("forbidden", "permission denied")),
    (ErrorCategory.NOT_FOUND, ("not found", "pgrst116")),
    (ErrorCategory.CONSTRAINT, ("constraint", "foreign key", "23503")),
    (ErrorCategory.VALIDATION, ("validation", "invalid")),
)


def category_for_status(status: int) -> Optional[ErrorCategory]:
    """Map an HTTP error status to a category; None for success codes."""
    if status in (401, 419):
        return ErrorCategory.AUTH
    if status == 403:
        return ErrorCategory.PERMISSION
    if status in (404, 410):
        return ErrorCategory.NOT_FOUND
    if status == 409:
        return ErrorCategory.CONSTRAINT
    if status in (400, 422):
        return ErrorCategory.VALIDATION
    if status in (408,):
        return ErrorCategory.TIMEOUT
    if status in (429, 502, 503, 504):
        return ErrorCategory.UNAVAILABLE
    if status >= 400:
        return ErrorCategory.UNKNOWN
    return None


def _chain(exc: BaseException) -> Iterator[BaseException]:
    seen = set()
    current: Optional[BaseException] = exc
    while current is not None and id(current) not in seen and len(seen) < 8:
        seen.add(id(current))
        yield current
        current = current.__cause__ or current.__context__


def _is_tls_rejection(exc: BaseException) -> bool:
    return any(isinstance(e, ssl.SSLCertVerificationError) for e in _chain(exc))


def classify_exception(exc: BaseException) -> ErrorCategory:
    """Classify an exception raised by a probe or a backend call site."""
    if isinstance(exc, RetryError):
        return classify_exception(exc.last_error)

    for cls, category in _TYPED:
        if isinstance(exc, cls):
            return category

    if isinstance(exc, (asyncio.TimeoutError, TimeoutError, httpx.TimeoutException)):
        return ErrorCategory.TIMEOUT
    if isinstance(exc, httpx.ProxyError) or _is_tls_rejection(exc):
        return ErrorCategory.POLICY
    if isinstance(exc, (httpx.UnsupportedProtocol, httpx.InvalidURL)):
        return ErrorCategory.CONFIGURATION
    if isinstance(exc, httpx.TransportError):
        return ErrorCategory.NETWORK
    if isinstance(exc, httpx.HTTPStatusError):
        return category_for_status(exc.response.status_code) or ErrorCategory.UNKNOWN
    if isinstance(exc, (ConnectionError, socket.gaierror)):
        return ErrorCategory.NETWORK

    status = getattr(exc, "status_code", None)
    if isinstance(status, int):
        found = category_for_status(status)
        if found is not None:
            return found

    message = f"{type(exc).__name__}: {exc}".lower()
    for category, markers in _MARKERS:
        if any(marker in message for marker in markers):
            return category
    return ErrorCategory.UNKNOWN


def is_retryable(exc: BaseException) -> bool:
    return classify_exception(exc).retryable
