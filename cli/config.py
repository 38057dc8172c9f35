from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from settings import DEFAULT_REQUEST_TIMEOUT

DEFAULT_SERVICE_URL = "http://localhost:8000"

_SERVICE_URL_ENV = "MONITOR_SERVICE_URL"
_WAIT_INTERVAL_ENV = "MONITOR_WAIT_INTERVAL"
_WAIT_TIMEOUT_ENV = "MONITOR_WAIT_TIMEOUT"


@dataclass(frozen=True)
class CLIConfig:
    """Where the monitor service lives and how long ``refresh --wait`` polls it."""

    base_url: str = DEFAULT_SERVICE_URL
    poll_interval: float = 0.5
    poll_timeout: float = 30.0
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT


def _positive_env(name: str, default: float) -> float:
    raw = (os.getenv(name) or "").strip()
    try:
        parsed = float(raw)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def load_config(
    base_url: Optional[str] = None,
    poll_interval: Optional[float] = None,
    poll_timeout: Optional[float] = None,
) -> CLIConfig:
    defaults = CLIConfig()
    url = base_url or os.getenv(_SERVICE_URL_ENV) or defaults.base_url
    return CLIConfig(
        base_url=url.rstrip("/"),
        poll_interval=poll_interval or _positive_env(_WAIT_INTERVAL_ENV, defaults.poll_interval),
        poll_timeout=poll_timeout or _positive_env(_WAIT_TIMEOUT_ENV, defaults.poll_timeout),
    )
