from __future__ import annotations
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from app.api import router
from logging_config import configure_logging
from services.controller import build_default_controller, build_default_platform


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    controller = build_default_controller()
    controller.start()
    try:
        yield
    finally:
        await controller.aclose()
        build_default_controller.cache_clear()
        build_default_platform.cache_clear()


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(
        title="Plant Monitor",
        description="Soil-moisture sync client with push registration.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.include_router(router)
    return app

app = create_app()
