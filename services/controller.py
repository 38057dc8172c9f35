"""Sensor synchronization state machine."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Callable, List, Optional, Set

import httpx

from logging_config import token_preview
from models.readings import DEFAULT_READING, RegistrationToken, SensorReading, SyncStatus
from services.classifier import Classification, classify
from services.exceptions import FetchError
from services.push import LocalPushPlatform, Unsubscribe
from services.registration import RegistrationClient
from services.sensor_client import SensorSyncClient
from settings import get_settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ControllerSnapshot:
    """Everything the presentation layer reads from the controller."""

    status: SyncStatus
    reading: SensorReading
    classification: Classification
    token: Optional[RegistrationToken]
    last_error: Optional[str]
    generation: int


SnapshotListener = Callable[[ControllerSnapshot], None]


class SyncController:
    """Owns the sync status, current reading and registration token.

    All state lives on the event loop that called :meth:`start`; fetch and
    registration results are applied from task completions on that loop. Each
    refresh is numbered and only the most recently requested one may change the
    state, so a slow older fetch cannot overwrite a newer result. A failed fetch
    keeps the previous reading on display.
    """

    def __init__(
        self,
        sensor_client: SensorSyncClient,
        registration_client: RegistrationClient,
        http: Optional[httpx.AsyncClient] = None,
        initial_reading: SensorReading = DEFAULT_READING,
    ) -> None:
        self.sensor_client = sensor_client
        self.registration_client = registration_client
        self._http = http
        self._status = SyncStatus.loading
        self._reading = initial_reading
        self._token: Optional[RegistrationToken] = None
        self._last_error: Optional[str] = None
        self._generation = 0
        self._tasks: Set[asyncio.Task[None]] = set()
        self._listeners: List[SnapshotListener] = []
        self._stop_listening: Optional[Unsubscribe] = None
        self._started = False
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def start(self) -> asyncio.Task[None]:
        """Kick off push registration and the initial fetch concurrently."""
        if self._started:
            raise RuntimeError("Controller has already been started.")
        self._started = True
        self._stop_listening = self.registration_client.listen()
        self._spawn(self._run_registration())
        return self.request_refresh()

    def request_refresh(self) -> asyncio.Task[None]:
        """Enter ``loading`` and fetch in the background."""
        if self._closed:
            raise RuntimeError("Controller is closed.")
        self._generation += 1
        generation = self._generation
        self._status = SyncStatus.loading
        logger.debug("Refresh requested", extra={"generation": generation})
        self._notify()
        return self._spawn(self._run_fetch(generation))

    async def refresh(self) -> ControllerSnapshot:
        await self.request_refresh()
        return self.snapshot()

    def snapshot(self) -> ControllerSnapshot:
        return ControllerSnapshot(
            status=self._status,
            reading=self._reading,
            classification=classify(self._reading.moisture_percent),
            token=self._token,
            last_error=self._last_error,
            generation=self._generation,
        )

    def subscribe(self, listener: SnapshotListener) -> Unsubscribe:
        """Call ``listener`` with a fresh snapshot after every state change."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def wait_idle(self) -> None:
        """Wait until every fetch and registration task has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def aclose(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._stop_listening is not None:
            self._stop_listening()
            self._stop_listening = None
        self._listeners.clear()
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        if self._http is not None:
            await self._http.aclose()

    async def _run_fetch(self, generation: int) -> None:
        try:
            reading = await self.sensor_client.fetch()
        except FetchError as exc:
            self._apply_failure(generation, exc)
        else:
            self._apply_reading(generation, reading)

    async def _run_registration(self) -> None:
        token = await self.registration_client.register(on_acquired=self._apply_token)
        if token is not None:
            self._apply_token(token)

    def _apply_reading(self, generation: int, reading: SensorReading) -> None:
        if not self._accepts(generation):
            return
        self._reading = reading
        self._status = SyncStatus.ready
        self._last_error = None
        logger.info(
            "Sensor reading applied",
            extra={
                "generation": generation,
                "sync_status": self._status.value,
                "moisture_percent": reading.moisture_percent,
                "zone": classify(reading.moisture_percent).zone.value,
            },
        )
        self._notify()

    def _apply_failure(self, generation: int, exc: FetchError) -> None:
        if not self._accepts(generation):
            return
        self._status = SyncStatus.failed
        self._last_error = exc.reason
        logger.warning(
            "Sensor fetch failed: %s",
            exc,
            extra={
                "generation": generation,
                "sync_status": self._status.value,
                "reason": exc.reason,
                "status_code": getattr(exc, "status_code", None),
            },
        )
        self._notify()

    def _apply_token(self, token: RegistrationToken) -> None:
        if self._closed:
            return
        self._token = token
        logger.debug(
            "Registration token updated",
            extra={"token_preview": token_preview(token.value)},
        )
        self._notify()

    def _accepts(self, generation: int) -> bool:
        if self._closed:
            return False
        if generation != self._generation:
            logger.debug(
                "Dropping result of superseded refresh",
                extra={"generation": generation},
            )
            return False
        return True

    def _spawn(self, coro) -> asyncio.Task[None]:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)
        return task

    def _on_task_done(self, task: asyncio.Task[None]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Background task failed", exc_info=exc)

    def _notify(self) -> None:
        if not self._listeners:
            return
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:  # noqa: BLE001 - a broken subscriber must not stall a transition
                logger.exception("Snapshot listener failed", extra={"sync_status": snapshot.status.value})


@lru_cache
def build_default_platform() -> LocalPushPlatform:
    settings = get_settings()
    return LocalPushPlatform(
        token=settings.push_token,
        permission_granted=settings.push_permission_granted,
    )


@lru_cache
def build_default_controller() -> SyncController:
    """Factory that wires the controller against the configured service."""
    settings = get_settings()
    http = httpx.AsyncClient(base_url=settings.api_base_url, timeout=settings.request_timeout)
    sensor_client = SensorSyncClient(http, timeout=settings.request_timeout)
    registration_client = RegistrationClient(
        http,
        build_default_platform(),
        timeout=settings.request_timeout,
    )
    return SyncController(sensor_client, registration_client, http=http)
