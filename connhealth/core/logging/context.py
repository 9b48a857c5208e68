from __future__ import annotations

import contextvars
import uuid
from typing import Any, Dict

_context: contextvars.ContextVar[Dict[str, Any]] = contextvars.ContextVar("connhealth_log_context", default={})


def get_context() -> Dict[str, Any]:
    return dict(_context.get())


def new_run_id() -> str:
    """Short id tying together every record of one diagnostics run."""
    return uuid.uuid4().hex[:12]


class log_context(object):
    """Bind values (e.g. ``run_id``) to every record logged inside the block.

    Tasks created inside the block copy the binding, so the probes fanned
    out by a diagnostics run carry its run id. ``None`` values are skipped.
    """

    def __init__(self, **values: Any) -> None:
        self._values = {k: v for k, v in values.items() if v is not None}
        self._token: contextvars.Token | None = None

    def __enter__(self) -> Dict[str, Any]:
        merged = {**_context.get(), **self._values}
        self._token = _context.set(merged)
        return dict(merged)

    def __exit__(self, exc_type, exc, tb) -> bool:
        if self._token is not None:
            _context.reset(self._token)
            self._token = None
        return False
