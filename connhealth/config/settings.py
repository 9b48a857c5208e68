"""Application settings and configuration."""
import os
from pathlib import Path
from typing import Dict, List, Optional

from dotenv import load_dotenv

from connhealth.domain.errors import ConfigurationError
from connhealth.domain.models import ReferenceEndpoint

ENV_PATH = Path(__file__).resolve().parent / '.env'
load_dotenv(dotenv_path=ENV_PATH)


def _int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except (TypeError, ValueError):
        return default


def _bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in ('1', 'true', 'yes', 'on')


def parse_endpoints(raw: str, default_timeout_ms: Optional[int] = None) -> List[ReferenceEndpoint]:
    """Parse ``name=url`` or bare ``url`` entries separated by commas."""
    endpoints: List[ReferenceEndpoint] = []
    for idx, item in enumerate(p.strip() for p in raw.split(',')):
        if not item:
            continue
        name, sep, url = item.partition('=')
        if not sep or '://' in name:
            name, url = f'endpoint{idx + 1}', item
        endpoints.append(ReferenceEndpoint(name.strip(), url.strip(), default_timeout_ms))
    return endpoints


class Settings:
    """Environment-driven settings. ``config/.env`` is loaded on import."""

    # ── Backend ────────────────────────────────────────────────────────────
    BACKEND_URL:         Optional[str] = os.getenv('CONNHEALTH_BACKEND_URL') or None
    BACKEND_API_KEY:     Optional[str] = os.getenv('CONNHEALTH_BACKEND_API_KEY') or None
    BACKEND_HEALTH_PATH: str           = os.getenv('CONNHEALTH_BACKEND_HEALTH_PATH', '/rest/v1/')

    # ── Reachability probes ────────────────────────────────────────────────
    # Empty means the built-in google/jsdelivr/github set.
    REFERENCE_ENDPOINTS_RAW: str = os.getenv('CONNHEALTH_REFERENCE_ENDPOINTS', '')

    # ── Optimistic fallback (off: failures are reported as they are) ───────
    ASSUME_REACHABLE: bool = _bool('CONNHEALTH_ASSUME_REACHABLE', False)

    # ── Log deduplication ──────────────────────────────────────────────────
    DEDUP_SWEEP_INTERVAL_S: int = _int('CONNHEALTH_DEDUP_SWEEP_INTERVAL_S', 60)
    DEDUP_RETENTION_S:      int = _int('CONNHEALTH_DEDUP_RETENTION_S', 300)
    DEDUP_WINDOWS_MS: Dict[str, int] = {
        'debug':   _int('CONNHEALTH_DEDUP_DEBUG_MS', 10_000),
        'info':    _int('CONNHEALTH_DEDUP_INFO_MS', 5_000),
        'warning': _int('CONNHEALTH_DEDUP_WARNING_MS', 30_000),
        'error':   _int('CONNHEALTH_DEDUP_ERROR_MS', 10_000),
    }

    # ── Watch mode ─────────────────────────────────────────────────────────
    WATCH_INTERVAL_S: int = _int('CONNHEALTH_WATCH_INTERVAL_S', 30)

    # ── Logging ────────────────────────────────────────────────────────────
    LOG_DIR:  Optional[Path] = Path(os.environ['CONNHEALTH_LOG_DIR']) if os.getenv('CONNHEALTH_LOG_DIR') else None
    LOG_LEVEL: str = os.getenv('LOG_LEVEL', 'INFO')

    @classmethod
    def reference_endpoints(cls) -> Optional[List[ReferenceEndpoint]]:
        """Configured endpoints, or None to use the defaults."""
        if not cls.REFERENCE_ENDPOINTS_RAW.strip():
            return None
        return parse_endpoints(cls.REFERENCE_ENDPOINTS_RAW)

    @classmethod
    def validate(cls) -> None:
        if not cls.BACKEND_URL:
            raise ConfigurationError("CONNHEALTH_BACKEND_URL must be set in config/.env or the environment")


settings = Settings()
