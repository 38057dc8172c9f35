"""Push-notification platform abstraction."""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Protocol

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PushMessage:
    """Notification received while the client runs in the foreground."""

    title: Optional[str] = None
    body: Optional[str] = None
    data: Dict[str, str] = field(default_factory=dict)


MessageListener = Callable[[PushMessage], None]
Unsubscribe = Callable[[], None]


class PushPlatform(Protocol):
    async def request_permission(self) -> bool:
        ...

    async def get_token(self) -> Optional[str]:
        ...

    def on_message(self, listener: MessageListener) -> Unsubscribe:
        ...


class LocalPushPlatform:
    """In-process push platform.

    Issues the configured token, or a fresh random one per process, and fans
    messages passed to :meth:`deliver` out to the registered listeners.
    """

    def __init__(self, token: Optional[str] = None, permission_granted: bool = True) -> None:
        self._token = token
        self._permission_granted = permission_granted
        self._listeners: List[MessageListener] = []

    async def request_permission(self) -> bool:
        return self._permission_granted

    async def get_token(self) -> Optional[str]:
        if self._token is None:
            self._token = secrets.token_urlsafe(48)
        return self._token

    def on_message(self, listener: MessageListener) -> Unsubscribe:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def deliver(self, message: PushMessage) -> int:
        """Dispatch a message to every listener and return how many received it."""
        listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(message)
            except Exception:  # noqa: BLE001 - one listener must not starve the others
                logger.exception("Push message listener failed")
        return len(listeners)
