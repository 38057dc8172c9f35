"""Domain models shared across services."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

DEFAULT_MOISTURE_PERCENT = 35.0
DEFAULT_STATUS_TEXT = "Monitoring"


@dataclass(frozen=True, slots=True)
class SensorReading:
    """Latest soil-moisture value and status text reported by the sensor service."""

    moisture_percent: float
    status_text: str


DEFAULT_READING = SensorReading(
    moisture_percent=DEFAULT_MOISTURE_PERCENT,
    status_text=DEFAULT_STATUS_TEXT,
)


@dataclass(frozen=True, slots=True)
class RegistrationToken:
    """Push registration token and whether the backend acknowledged it."""

    value: str
    delivered_to_backend: bool = False


class SyncStatus(str, Enum):
    """Sensor synchronization states owned by the controller."""

    loading = "loading"
    ready = "ready"
    failed = "failed"
