from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles
import uvicorn

from app.api import router
from app.web import router as web_router
from logging_config import configure_logging
from services.case_service import build_default_case_service
from settings import get_settings
from warehouse.mock_warehouse import build_default_warehouse


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    build_default_case_service()
    try:
        yield
    finally:
        build_default_case_service.cache_clear()
        build_default_warehouse.cache_clear()


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(
        title="PoolPilot Alerts Review",
        description="Review, annotate and resolve pool and spa alert cases.",
        version="0.1.0",
        lifespan=lifespan,
    )
    static_dir = Path(__file__).resolve().parent.parent / "static"
    app.mount("/static", StaticFiles(directory=static_dir), name="static")
    app.include_router(router)
    app.include_router(web_router)
    return app


app = create_app()


def run() -> None:
    settings = get_settings()
    uvicorn.run(
        "app.main:app",
        host=settings.api_host,
        port=settings.api_port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
