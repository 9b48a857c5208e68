"""Main CLI entry-point."""
from __future__ import annotations

import asyncio
import sys

from connhealth.config import settings
from connhealth.core.logging.config import bootstrap_logging, shutdown_logging


def main(argv: list[str] | None = None) -> int:
    bootstrap_logging(
        level=settings.LOG_LEVEL,
        log_dir=settings.LOG_DIR,
        log_file_name="connhealth.jsonl",
    )
    # Lazy import keeps logging configured before any module-level logger is built.
    from connhealth.presentation.cli import run

    try:
        return asyncio.run(run(sys.argv[1:] if argv is None else argv))
    except KeyboardInterrupt:
        return 130
    finally:
        shutdown_logging()


if __name__ == "__main__":
    raise SystemExit(main())
