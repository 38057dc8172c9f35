"""Client for the remote soil-moisture sensor service."""

from __future__ import annotations

import asyncio
import logging
import math
import time
from typing import Any, Mapping

import httpx

from models.readings import DEFAULT_MOISTURE_PERCENT, DEFAULT_STATUS_TEXT, SensorReading
from services.exceptions import NetworkFailure, ParseFailure, ServerError

logger = logging.getLogger(__name__)

READING_PATH = "/"
MOISTURE_FIELD = "valor_unidade"
STATUS_FIELD = "situacao_atual"


class SensorSyncClient:
    """Fetches the current sensor state.

    The client keeps no state of its own besides the shared ``httpx.AsyncClient``,
    so overlapping ``fetch`` calls are independent of each other.
    """

    def __init__(self, http: httpx.AsyncClient, timeout: float = 10.0, path: str = READING_PATH) -> None:
        self._http = http
        self._timeout = timeout
        self._path = path

    async def fetch(self) -> SensorReading:
        start_time = time.perf_counter()
        try:
            response = await asyncio.wait_for(self._http.get(self._path), timeout=self._timeout)
        except asyncio.TimeoutError as exc:
            raise NetworkFailure(f"Sensor request exceeded {self._timeout}s.") from exc
        except httpx.HTTPError as exc:
            raise NetworkFailure(f"Sensor request failed: {exc}") from exc

        elapsed_ms = int((time.perf_counter() - start_time) * 1000)
        if response.status_code != httpx.codes.OK:
            logger.warning(
                "Sensor service returned an error status",
                extra={
                    "endpoint": self._path,
                    "status_code": response.status_code,
                    "elapsed_ms": elapsed_ms,
                },
            )
            raise ServerError(response.status_code)

        try:
            payload = response.json()
        except ValueError as exc:
            raise ParseFailure("Sensor service returned a body that is not JSON.") from exc
        if not isinstance(payload, Mapping):
            raise ParseFailure("Sensor service returned JSON that is not an object.")

        reading = parse_reading(payload)
        logger.debug(
            "Fetched sensor reading",
            extra={
                "endpoint": self._path,
                "status_code": response.status_code,
                "moisture_percent": reading.moisture_percent,
                "elapsed_ms": elapsed_ms,
            },
        )
        return reading


def parse_reading(payload: Mapping[str, Any]) -> SensorReading:
    """Build a reading from a decoded body, falling back per missing field."""
    return SensorReading(
        moisture_percent=_parse_moisture(payload.get(MOISTURE_FIELD)),
        status_text=_parse_status(payload.get(STATUS_FIELD)),
    )


def _parse_moisture(value: Any) -> float:
    # bool is an int subclass but never a meaningful reading
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return DEFAULT_MOISTURE_PERCENT
    parsed = float(value)
    if not math.isfinite(parsed):
        return DEFAULT_MOISTURE_PERCENT
    return parsed


def _parse_status(value: Any) -> str:
    if not isinstance(value, str):
        return DEFAULT_STATUS_TEXT
    return value
