"""Exception hierarchy for sensor synchronization and push registration."""

from __future__ import annotations

from typing import Optional


class MonitorError(Exception):
    """Base exception for all plant monitor client errors."""

    reason = "error"


class FetchError(MonitorError):
    """Fetching the current sensor state failed."""


class ParseFailure(FetchError):
    """The sensor service answered with a body that is not a JSON object."""

    reason = "parse_failure"


class ServerError(FetchError):
    """The sensor service answered with a non-200 status."""

    reason = "server_error"

    def __init__(self, status_code: int, message: Optional[str] = None) -> None:
        super().__init__(message or f"Sensor service returned HTTP {status_code}.")
        self.status_code = status_code


class NetworkFailure(FetchError):
    """The request timed out or the transport failed."""

    reason = "network_failure"


class RegistrationError(MonitorError):
    """Push registration failed."""


class AcquireError(RegistrationError):
    """The push platform did not issue a registration token."""

    reason = "acquire_failure"


class DeliveryError(RegistrationError):
    """The backend did not acknowledge the registration token."""

    reason = "delivery_failure"

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code
