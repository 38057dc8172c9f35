"""Push registration: token acquisition and delivery to the backend."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional

import httpx

from logging_config import token_preview
from models.readings import RegistrationToken
from services.exceptions import AcquireError, DeliveryError
from services.push import PushMessage, PushPlatform, Unsubscribe

logger = logging.getLogger(__name__)

REGISTRATION_PATH = "/fcm"
_ACCEPTED_STATUSES = {httpx.codes.OK, httpx.codes.CREATED}


class RegistrationClient:
    """Registers this client instance for push notifications.

    Registration is attempted once per process. Failures are logged and never
    retried; a new token is acquired and delivered on the next launch.
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        platform: PushPlatform,
        timeout: float = 10.0,
        path: str = REGISTRATION_PATH,
    ) -> None:
        self._http = http
        self._platform = platform
        self._timeout = timeout
        self._path = path

    async def acquire_token(self) -> str:
        try:
            granted = await self._platform.request_permission()
            if not granted:
                logger.warning("Push notification permission was denied", extra={"reason": "permission_denied"})
            token = await self._platform.get_token()
        except Exception as exc:  # noqa: BLE001 - platform errors are opaque
            raise AcquireError(f"Push platform failed to issue a token: {exc}") from exc
        if not token:
            raise AcquireError("Push platform did not issue a token.")
        logger.info("Acquired push registration token", extra={"token_preview": token_preview(token)})
        return token

    async def deliver_token(self, token: str) -> None:
        try:
            response = await asyncio.wait_for(
                self._http.post(self._path, json={"fcmToken": token}),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError as exc:
            raise DeliveryError(f"Token delivery exceeded {self._timeout}s.") from exc
        except httpx.HTTPError as exc:
            raise DeliveryError(f"Token delivery failed: {exc}") from exc

        if response.status_code not in _ACCEPTED_STATUSES:
            raise DeliveryError(
                f"Backend rejected token with HTTP {response.status_code}.",
                status_code=response.status_code,
            )
        logger.info(
            "Delivered push registration token",
            extra={"endpoint": self._path, "status_code": response.status_code},
        )

    async def register(
        self,
        on_acquired: Optional[Callable[[RegistrationToken], None]] = None,
    ) -> Optional[RegistrationToken]:
        """Acquire and deliver a token, returning ``None`` when no token was issued."""
        try:
            value = await self.acquire_token()
        except AcquireError as exc:
            logger.error("Push registration aborted: %s", exc, extra={"reason": exc.reason})
            return None

        token = RegistrationToken(value=value)
        if on_acquired is not None:
            on_acquired(token)

        try:
            await self.deliver_token(value)
        except DeliveryError as exc:
            logger.warning(
                "Push token was not delivered: %s",
                exc,
                extra={
                    "endpoint": self._path,
                    "status_code": exc.status_code,
                    "reason": exc.reason,
                    "token_preview": token_preview(value),
                },
            )
            return token
        return RegistrationToken(value=value, delivered_to_backend=True)

    def listen(self) -> Unsubscribe:
        """Log foreground notifications until the returned callable is invoked."""
        return self._platform.on_message(_log_message)


def _log_message(message: PushMessage) -> None:
    logger.info(
        "Foreground push message received: title=%s body=%s data=%s",
        message.title,
        message.body,
        message.data,
    )
