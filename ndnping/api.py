"""ndnping status API - FastAPI app exposing live run statistics."""

import logging
import threading
from typing import Protocol

from fastapi import FastAPI
from pydantic import BaseModel

logger = logging.getLogger(__name__)


class StatsSource(Protocol):
    def get_stats(self) -> dict: ...


class HealthResponse(BaseModel):
    status: str
    service: str
    role: str


def create_app(source: StatsSource, role: str) -> FastAPI:
    app = FastAPI(
        title="ndnping",
        description="Live statistics of an ndnping client or server",
        version="1.0.0",
    )

    @app.get("/health", response_model=HealthResponse)
    async def health_check():
        return HealthResponse(status="healthy", service="ndnping", role=role)

    @app.get("/stats")
    async def get_stats():
        return source.get_stats()

    return app


def serve_in_background(app: FastAPI, port: int, host: str = "127.0.0.1") -> threading.Thread:
    """Run uvicorn for ``app`` on a daemon thread."""
    import uvicorn

    config = uvicorn.Config(app, host=host, port=port, log_level="warning")
    server = uvicorn.Server(config)

    thread = threading.Thread(target=server.run, name="ndnping-status", daemon=True)
    thread.start()
    logger.info("status API on http://%s:%d", host, port)
    return thread
