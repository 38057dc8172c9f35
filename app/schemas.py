"""Pydantic schemas for the HTTP API layer."""

from __future__ import annotations

from typing import Dict, Optional

from pydantic import BaseModel, Field

from models.readings import SyncStatus
from services.classifier import AlertZone, clamp_percent
from services.controller import ControllerSnapshot


class ReadingPayload(BaseModel):
    """Current reading, with the gauge position clamped to 0-100."""

    moisture_percent: float
    display_percent: float = Field(..., ge=0, le=100)
    status_text: str


class ZonePayload(BaseModel):
    zone: AlertZone
    color_tag: str


class TokenPayload(BaseModel):
    value: str
    delivered_to_backend: bool


class StateResponse(BaseModel):
    """Snapshot of the sync controller exposed to clients."""

    status: SyncStatus
    reading: ReadingPayload
    classification: ZonePayload
    token: Optional[TokenPayload] = None
    last_error: Optional[str] = Field(
        default=None, description="Reason of the most recent failed fetch, if any."
    )
    generation: int = Field(..., ge=0)

    @classmethod
    def from_snapshot(cls, snapshot: ControllerSnapshot) -> "StateResponse":
        token = snapshot.token
        return cls(
            status=snapshot.status,
            reading=ReadingPayload(
                moisture_percent=snapshot.reading.moisture_percent,
                display_percent=clamp_percent(snapshot.reading.moisture_percent),
                status_text=snapshot.reading.status_text,
            ),
            classification=ZonePayload(
                zone=snapshot.classification.zone,
                color_tag=snapshot.classification.color_tag,
            ),
            token=(
                TokenPayload(value=token.value, delivered_to_backend=token.delivered_to_backend)
                if token is not None
                else None
            ),
            last_error=snapshot.last_error,
            generation=snapshot.generation,
        )


class NotificationRequest(BaseModel):
    """Foreground push message injected for debugging."""

    title: Optional[str] = None
    body: Optional[str] = None
    data: Dict[str, str] = Field(default_factory=dict)


class NotificationAccepted(BaseModel):
    listeners: int = Field(..., ge=0)
