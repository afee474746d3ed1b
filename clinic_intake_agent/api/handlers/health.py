"""
Health check handler.
"""

from datetime import datetime, timezone
from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ...config import Settings
from ...services import RecordStore


class HealthResponse(BaseModel):
    """Liveness summary for the intake service."""
    status: str
    service: str
    version: str
    started_at: str
    uptime_seconds: float


class HealthHandler:
    """Liveness and readiness checks; readiness requires a working record store."""

    def __init__(self, settings: Settings, store: RecordStore):
        self.settings = settings
        self.store = store
        self.started_at = datetime.now(timezone.utc)
        self.router = APIRouter()
        self._setup_routes()

    def _setup_routes(self):
        """Setup health check routes."""

        @self.router.get("/", response_model=HealthResponse)
        async def health_check():
            uptime = datetime.now(timezone.utc) - self.started_at
            return HealthResponse(
                status="healthy",
                service=self.settings.app_name,
                version=self.settings.app_version,
                started_at=self.started_at.isoformat(),
                uptime_seconds=uptime.total_seconds(),
            )

        @self.router.get("/ready")
        async def readiness_check():
            """Ready once the SQLite store answers queries."""
            if not await self.store.ping():
                return JSONResponse(
                    status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                    content={"status": "not_ready", "database": "unavailable"},
                )
            return {"status": "ready", "database": "ok"}

        @self.router.get("/live")
        async def liveness_check():
            return {"status": "alive"}
