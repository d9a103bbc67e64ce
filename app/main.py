from __future__ import annotations
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from app.api import router
from logging_config import configure_logging
from services.device import build_default_adapter
from storage.readout_store import build_default_store


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    adapter = build_default_adapter()
    adapter.start()
    try:
        yield
    finally:
        build_default_adapter.cache_clear()
        build_default_store.cache_clear()


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(
        title="BME280 Hub Adapter",
        description="Ingests BME280 radio frames into a rolling, disk-backed time series.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.include_router(router)
    return app

app = create_app()
