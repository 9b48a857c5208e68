from __future__ import annotations

import asyncio
import os
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, TypeVar

from connhealth.core.logging.dedup import LogDeduplicator
from connhealth.core.logging.logger import DedupedLogger, StructuredLogger, get_logger
from connhealth.domain.errors import (
    ConfigurationError,
    RetryAbortedError,
    RetryCancelledError,
    RetryExhaustedError,
)
from .error_classifier import ErrorCategory, classify_exception


T = TypeVar("T")
Operation = Callable[[], Awaitable[T]]
Classifier = Callable[[BaseException], ErrorCategory]
Sleeper = Callable[[float], Awaitable[None]]


def _int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except (TypeError, ValueError):
        return default


def _float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, str(default)))
    except (TypeError, ValueError):
        return default


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    max_retries: int = 3
    initial_delay_ms: int = 1000
    max_delay_ms: int = 10000
    backoff_factor: float = 2.0

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ConfigurationError(f"max_retries must be >= 0, got {self.max_retries}")
        if self.initial_delay_ms <= 0:
            raise ConfigurationError(f"initial_delay_ms must be > 0, got {self.initial_delay_ms}")
        if self.max_delay_ms < self.initial_delay_ms:
            raise ConfigurationError(
                f"max_delay_ms ({self.max_delay_ms}) must be >= initial_delay_ms ({self.initial_delay_ms})"
            )
        if self.backoff_factor <= 1:
            raise ConfigurationError(f"backoff_factor must be > 1, got {self.backoff_factor}")

    @classmethod
    def from_env(cls) -> "RetryPolicy":
        """Create policy from environment variables."""
        return cls(
            max_retries=_int("CONNHEALTH_RETRY_MAX_RETRIES", 3),
            initial_delay_ms=_int("CONNHEALTH_RETRY_INITIAL_DELAY_MS", 1000),
            max_delay_ms=_int("CONNHEALTH_RETRY_MAX_DELAY_MS", 10000),
            backoff_factor=_float("CONNHEALTH_RETRY_FACTOR", 2.0),
        )

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1

    def delay_ms(self, attempt: int) -> int:
        """Wait before retry number ``attempt`` (0-based), capped at max_delay_ms."""
        raw = self.initial_delay_ms * (self.backoff_factor ** max(0, attempt))
        return int(min(raw, self.max_delay_ms))

    def schedule_ms(self) -> List[int]:
        return [self.delay_ms(n) for n in range(self.max_retries)]


class RetryCoordinator:
    """Runs a fallible async operation under a RetryPolicy.

    Only failures classified as retryable (timeouts, transport errors,
    temporarily unavailable services) are retried; anything else is raised
    at once as RetryAbortedError. Once attempts run out the last failure is
    raised as RetryExhaustedError.

    Retry warnings are always throttled. A DedupedLogger is used as given;
    any other logger is wrapped with ``deduplicator``, or with a private
    LogDeduplicator when none is shared.
    """

    def __init__(
        self,
        policy: Optional[RetryPolicy] = None,
        *,
        logger: Optional[StructuredLogger] = None,
        deduplicator: Optional[LogDeduplicator] = None,
        classifier: Classifier = classify_exception,
        sleep: Optional[Sleeper] = None,
    ) -> None:
        self.policy = policy or RetryPolicy()
        if isinstance(logger, DedupedLogger):
            self.logger: StructuredLogger = logger
        else:
            base = logger or get_logger(__name__, service="retry")
            self.logger = base.deduplicated(deduplicator or LogDeduplicator())
        self.classifier = classifier
        self._sleep = sleep

    async def run(
        self,
        operation: Operation[T],
        policy: Optional[RetryPolicy] = None,
        *,
        context: Optional[Dict[str, Any]] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> T:
        policy = policy or self.policy
        ctx = dict(context or {})
        attempt = 0
        while True:
            attempt += 1
            try:
                if attempt == 1:
                    self.logger.debug(lambda: "retry-start", extra={"detail": ctx})
                return await operation()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                category = self.classifier(e)
                if not category.retryable:
                    self.logger.error(
                        lambda: f"operation failed with non-retryable {category.value.lower()} error",
                        extra={"attempt": attempt, "error_kind": category.kind.value, "detail": {**ctx, "error": str(e)}},
                    )
                    raise RetryAbortedError(e, kind=category.kind, attempts=attempt, category=category.value) from e
                if attempt >= policy.max_attempts:
                    self.logger.error(
                        lambda: "operation failed, retries exhausted",
                        extra={"attempt": attempt, "error_kind": category.kind.value, "detail": {**ctx, "error": str(e)}},
                    )
                    raise RetryExhaustedError(e, kind=category.kind, attempts=attempt, category=category.value) from e

                delay_ms = policy.delay_ms(attempt - 1)
                self.logger.warning(
                    lambda: "operation failed, retrying",
                    extra={
                        "attempt": attempt,
                        "delay_ms": delay_ms,
                        "error_kind": category.kind.value,
                        "detail": {**ctx, "error": str(e), "max_attempts": policy.max_attempts},
                    },
                )
                if await self._wait(delay_ms / 1000.0, cancel_event):
                    raise RetryCancelledError(e, kind=category.kind, attempts=attempt, category=category.value) from e

    async def _wait(self, seconds: float, cancel_event: Optional[asyncio.Event]) -> bool:
        """Sleep for the backoff; True if cancel_event fired first."""
        sleep = self._sleep or asyncio.sleep
        if cancel_event is None:
            await sleep(seconds)
            return False
        if cancel_event.is_set():
            return True
        sleeper = asyncio.ensure_future(sleep(seconds))
        waiter = asyncio.ensure_future(cancel_event.wait())
        try:
            done, _ = await asyncio.wait({sleeper, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in (sleeper, waiter):
                task.cancel()
            await asyncio.gather(sleeper, waiter, return_exceptions=True)
        return waiter in done


async def with_retry(
    operation: Operation[T],
    policy: Optional[RetryPolicy] = None,
    *,
    logger: Optional[StructuredLogger] = None,
    deduplicator: Optional[LogDeduplicator] = None,
    context: Optional[Dict[str, Any]] = None,
    cancel_event: Optional[asyncio.Event] = None,
) -> T:
    """One-shot helper around RetryCoordinator.run."""
    coordinator = RetryCoordinator(policy, logger=logger, deduplicator=deduplicator)
    return await coordinator.run(operation, context=context, cancel_event=cancel_event)
