from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional


_API_BASE_URL_ENV = "PLANT_API_BASE_URL"
_REQUEST_TIMEOUT_ENV = "PLANT_REQUEST_TIMEOUT"
_PUSH_TOKEN_ENV = "PUSH_REGISTRATION_TOKEN"
_PUSH_PERMISSION_ENV = "PUSH_PERMISSION_GRANTED"
_LOG_LEVEL_ENV = "LOG_LEVEL"

DEFAULT_API_BASE_URL = "https://tech-planta-api.vercel.app"
DEFAULT_REQUEST_TIMEOUT = 10.0

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class Settings:
    api_base_url: str
    request_timeout: float
    push_token: Optional[str]
    push_permission_granted: bool
    log_level: str


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_optional_env(name: str, default: Optional[str]) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or None


def _read_timeout(default: float) -> float:
    value = os.getenv(_REQUEST_TIMEOUT_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = float(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_bool_env(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip().lower()
    if candidate in _TRUTHY:
        return True
    if candidate in _FALSY:
        return False
    return default


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(
        api_base_url=_read_str_env(_API_BASE_URL_ENV, DEFAULT_API_BASE_URL).rstrip("/"),
        request_timeout=_read_timeout(DEFAULT_REQUEST_TIMEOUT),
        push_token=_read_optional_env(_PUSH_TOKEN_ENV, None),
        push_permission_granted=_read_bool_env(_PUSH_PERMISSION_ENV, True),
        log_level=_read_log_level("INFO"),
    )
