"""HTTP route definitions for the service."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from app.schemas import NotificationAccepted, NotificationRequest, StateResponse
from services.controller import SyncController, build_default_controller, build_default_platform
from services.push import LocalPushPlatform, PushMessage

router = APIRouter()


def get_controller() -> SyncController:
    return build_default_controller()


def get_platform() -> LocalPushPlatform:
    return build_default_platform()


@router.get(
    "/state",
    response_model=StateResponse,
    summary="Current sync status, reading, alert zone and registration token.",
)
async def get_state(
    controller: SyncController = Depends(get_controller),
) -> StateResponse:
    return StateResponse.from_snapshot(controller.snapshot())


@router.post(
    "/refresh",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=StateResponse,
    summary="Start a new fetch of the sensor state.",
)
async def refresh(
    controller: SyncController = Depends(get_controller),
) -> StateResponse:
    try:
        controller.request_refresh()
    except RuntimeError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(exc),
        ) from exc
    return StateResponse.from_snapshot(controller.snapshot())


@router.post(
    "/notifications",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=NotificationAccepted,
    summary="Inject a foreground push message into the local platform.",
)
async def post_notification(
    payload: NotificationRequest,
    platform: LocalPushPlatform = Depends(get_platform),
) -> NotificationAccepted:
    message = PushMessage(title=payload.title, body=payload.body, data=dict(payload.data))
    return NotificationAccepted(listeners=platform.deliver(message))


@router.get(
    "/health",
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get(
    "/",
    summary="Root endpoint mirrors health information.",
    status_code=status.HTTP_200_OK,
)
async def root() -> dict[str, str]:
    return {"status": "ok", "detail": "See /state for the current reading."}
