from .config import bootstrap_logging, shutdown_logging
from .context import log_context, new_run_id
from .dedup import LogDeduplicator
from .logger import DedupedLogger, StructuredLogger, get_logger

__all__ = [
    "bootstrap_logging",
    "shutdown_logging",
    "log_context",
    "new_run_id",
    "LogDeduplicator",
    "DedupedLogger",
    "StructuredLogger",
    "get_logger",
]
