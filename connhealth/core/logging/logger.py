from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Mapping, Optional, Protocol

from .dedup import LogDeduplicator
from .levels import DEFAULT_DEDUP_WINDOWS_MS, LogLevel, severity_name


class SupportsStr(Protocol):
    def __str__(self) -> str: ...


Message = SupportsStr | Callable[[], SupportsStr]


class StructuredLogger:
    def __init__(self, logger: logging.Logger, service: Optional[str] = None) -> None:
        self._logger = logger
        self._service = service

    @property
    def name(self) -> str:
        return self._logger.name

    def deduplicated(
        self, deduplicator: LogDeduplicator, *, windows_ms: Optional[Mapping[str, int]] = None
    ) -> "DedupedLogger":
        """Same underlying logger and service, throttled through ``deduplicator``."""
        return DedupedLogger(self._logger, deduplicator, service=self._service, windows_ms=windows_ms)

    def is_enabled_for(self, level: int) -> bool:
        return self._logger.isEnabledFor(level)

    def _resolve(self, msg: Message) -> str:
        try:
            return str(msg() if callable(msg) else msg)
        except Exception:
            return "<lazy message failed>"

    def _emit(self, level: int, message: str, *args: Any, **kwargs: Any) -> None:
        extra = dict(kwargs.pop("extra", None) or {})
        if self._service and "service" not in extra:
            extra["service"] = self._service
        self._logger.log(level, message, *args, extra=extra, stacklevel=4, **kwargs)

    def _log(self, level: int, msg: Message, *args: Any, **kwargs: Any) -> None:
        if not self._logger.isEnabledFor(level):
            return
        self._emit(level, self._resolve(msg), *args, **kwargs)

    def trace(self, msg: Message, *args: Any, **kwargs: Any) -> None:
        self._log(int(LogLevel.TRACE), msg, *args, **kwargs)

    def debug(self, msg: Message, *args: Any, **kwargs: Any) -> None:
        self._log(logging.DEBUG, msg, *args, **kwargs)

    def info(self, msg: Message, *args: Any, **kwargs: Any) -> None:
        self._log(logging.INFO, msg, *args, **kwargs)

    def success(self, msg: Message, *args: Any, **kwargs: Any) -> None:
        self._log(int(LogLevel.SUCCESS), msg, *args, **kwargs)

    def warning(self, msg: Message, *args: Any, **kwargs: Any) -> None:
        self._log(logging.WARNING, msg, *args, **kwargs)

    def error(self, msg: Message, *args: Any, **kwargs: Any) -> None:
        self._log(logging.ERROR, msg, *args, **kwargs)

    def critical(self, msg: Message, *args: Any, **kwargs: Any) -> None:
        self._log(logging.CRITICAL, msg, *args, **kwargs)


class DedupedLogger(StructuredLogger):
    """StructuredLogger that drops repeats of the same message per severity.

    The dedup key is the rendered message, so keep variable data (attempt
    numbers, latencies) in ``extra`` rather than in the text.
    """

    def __init__(
        self,
        logger: logging.Logger,
        deduplicator: LogDeduplicator,
        service: Optional[str] = None,
        *,
        windows_ms: Optional[Mapping[str, int]] = None,
    ) -> None:
        super().__init__(logger, service=service)
        self.deduplicator = deduplicator
        self.windows_ms: Dict[str, int] = dict(DEFAULT_DEDUP_WINDOWS_MS)
        if windows_ms:
            self.windows_ms.update({k.lower(): int(v) for k, v in windows_ms.items()})

    def _log(self, level: int, msg: Message, *args: Any, **kwargs: Any) -> None:
        if not self._logger.isEnabledFor(level):
            return
        message = self._resolve(msg)
        severity = severity_name(level)
        window = self.windows_ms.get(severity, DEFAULT_DEDUP_WINDOWS_MS["info"])
        if not self.deduplicator.should_emit(message, severity, window):
            return
        self._emit(level, message, *args, **kwargs)


def get_logger(
    name: str,
    *,
    service: Optional[str] = None,
    deduplicator: Optional[LogDeduplicator] = None,
    windows_ms: Optional[Mapping[str, int]] = None,
) -> StructuredLogger:
    logger = logging.getLogger(name)
    if deduplicator is not None:
        return DedupedLogger(logger, deduplicator, service=service, windows_ms=windows_ms)
    return StructuredLogger(logger, service=service)
