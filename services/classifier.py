"""Moisture alert zone classification."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Tuple

LOW_UPPER_BOUND = 25.0
MEDIUM_UPPER_BOUND = 50.0
GAUGE_MINIMUM = 0.0
GAUGE_MAXIMUM = 100.0


class AlertZone(str, Enum):
    """Discrete moisture bands, lowest first."""

    low = "low"
    medium = "medium"
    high = "high"


_COLOR_TAGS = {
    AlertZone.low: "alert",
    AlertZone.medium: "warning",
    AlertZone.high: "healthy",
}

# (start, end, zone) bands drawn on the gauge axis.
GAUGE_BANDS: Tuple[Tuple[float, float, AlertZone], ...] = (
    (GAUGE_MINIMUM, LOW_UPPER_BOUND, AlertZone.low),
    (LOW_UPPER_BOUND, MEDIUM_UPPER_BOUND, AlertZone.medium),
    (MEDIUM_UPPER_BOUND, GAUGE_MAXIMUM, AlertZone.high),
)


@dataclass(frozen=True, slots=True)
class Classification:
    zone: AlertZone
    color_tag: str


def classify(value: float) -> Classification:
    """Map a moisture percentage to its alert zone.

    Upper bounds are inclusive, so 25 is ``low`` and 50 is ``medium``. Values
    outside ``[0, 100]`` fall into the nearest band instead of failing.
    """
    if value <= LOW_UPPER_BOUND:
        zone = AlertZone.low
    elif value <= MEDIUM_UPPER_BOUND:
        zone = AlertZone.medium
    else:
        zone = AlertZone.high
    return Classification(zone=zone, color_tag=_COLOR_TAGS[zone])


def clamp_percent(value: float) -> float:
    """Clamp a reading to the gauge range for needle positioning."""
    return max(GAUGE_MINIMUM, min(GAUGE_MAXIMUM, value))
