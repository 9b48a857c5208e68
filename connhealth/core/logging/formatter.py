from __future__ import annotations

import json
import logging
import time
from typing import Any, Dict

from .context import get_context

_LEVEL_COLORS = {
    "TRACE": "\033[90m",
    "DEBUG": "\033[37m",
    "INFO": "\033[36m",
    "SUCCESS": "\033[32m",
    "WARNING": "\033[33m",
    "ERROR": "\033[31m",
    "CRITICAL": "\033[35m",
}
_RESET = "\033[0m"

# Extra fields the checkers attach to their records.
_FIELDS = ("target", "status_code", "latency_ms", "error_kind", "attempt", "delay_ms", "status", "detail")


def _record_metadata(record: logging.LogRecord) -> Dict[str, Any]:
    return {
        "timestamp": time.strftime("%Y-%m-%dT%H:%M:%S", time.localtime(record.created)),
        "level": record.levelname,
        "service": getattr(record, "service", None),
        "logger": record.name,
        "function": record.funcName,
        "line_number": record.lineno,
        "thread_id": record.thread,
    }


def _record_fields(record: logging.LogRecord) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for name in _FIELDS:
        value = getattr(record, name, None)
        if value is not None:
            out[name] = value
    return out


class ConsoleFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        try:
            md = _record_metadata(record)
            lvl = record.levelname
            parts = [
                md["timestamp"],
                lvl,
                md["service"] or "-",
                f"{md['logger']}:{md['function']}:{md['line_number']}",
                record.getMessage(),
            ]
            fields = _record_fields(record)
            if fields:
                parts.append(" ".join(f"{k}={v}" for k, v in fields.items()))
            ctx = get_context()
            if ctx:
                parts.append(f"{ctx}")
            if record.exc_info:
                parts.append(self.formatException(record.exc_info))
            return f"{_LEVEL_COLORS.get(lvl, '')}{' | '.join(parts)}{_RESET}"
        except Exception:
            return record.getMessage()


class JSONFormatter(logging.Formatter):
    """One JSON object per line, suitable for the rotating ``.jsonl`` file."""

    def format(self, record: logging.LogRecord) -> str:
        try:
            payload: Dict[str, Any] = _record_metadata(record)
            payload["message"] = record.getMessage()
            payload.update(_record_fields(record))
            ctx = get_context()
            if ctx:
                payload["context"] = ctx
            if record.exc_info:
                payload["exception"] = self.formatException(record.exc_info)
            return json.dumps(payload, default=str, separators=(",", ":"))
        except Exception:
            return json.dumps({"message": "log format error"}, separators=(",", ":"))
