from __future__ import annotations

import logging
from enum import IntEnum
from typing import Dict


class LogLevel(IntEnum):
    TRACE = 5
    DEBUG = 10
    INFO = 20
    SUCCESS = 25
    WARNING = 30
    ERROR = 40
    CRITICAL = 50


# Suppression windows used by DedupedLogger, per severity.
DEFAULT_DEDUP_WINDOWS_MS: Dict[str, int] = {
    "trace": 10_000,
    "debug": 10_000,
    "info": 5_000,
    "success": 5_000,
    "warning": 30_000,
    "error": 10_000,
    "critical": 10_000,
}


def register_levels() -> None:
    if logging.getLevelName(LogLevel.TRACE) == "Level 5":
        logging.addLevelName(LogLevel.TRACE, "TRACE")
    if logging.getLevelName(LogLevel.SUCCESS) == "Level 25":
        logging.addLevelName(LogLevel.SUCCESS, "SUCCESS")


def to_level(value: int | str) -> int:
    if isinstance(value, int):
        return value
    name = value.strip().upper()
    if name == "WARN":
        name = "WARNING"
    if name in LogLevel.__members__:
        return int(LogLevel[name])
    return logging.INFO


def severity_name(level: int) -> str:
    """Lower-case severity used as half of a dedup key."""
    try:
        return LogLevel(level).name.lower()
    except ValueError:
        return f"level{level}"
