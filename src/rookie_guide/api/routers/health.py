"""Container probes, mounted at the root outside ``/api``.

``GET /health`` opens the configured database and runs ``SELECT 1``;
it answers 503 when that fails or takes longer than the probe timeout.
``GET /health/live`` answers 200 while the process runs. The API-key
gate lets both through.
"""

from __future__ import annotations

import asyncio
import time
from datetime import UTC, datetime
from typing import Literal

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from rookie_guide.api.deps import get_settings
from rookie_guide.api.settings import GuideAPISettings
from rookie_guide.core.connection import create_connection

router = APIRouter(prefix="/health", tags=["health"])

_BOOTED = time.monotonic()
PROBE_TIMEOUT_S = 5.0


class CheckResult(BaseModel):
    status: Literal["healthy", "unhealthy"]
    latency_ms: float | None = None
    error: str | None = None


class HealthResponse(BaseModel):
    """Body of ``GET /health``."""

    status: Literal["healthy", "unhealthy"]
    service: str = "rookie-guide"
    version: str
    uptime_s: float
    timestamp: str = Field(default_factory=lambda: datetime.now(UTC).isoformat())
    checks: dict[str, CheckResult]


class LivenessResponse(BaseModel):
    status: str = "alive"


def _select_one(settings: GuideAPISettings) -> None:
    conn, _info = create_connection(settings.database_url, data_dir=settings.data_dir)
    try:
        conn.execute("SELECT 1")
        conn.fetchone()
    finally:
        conn.close()


async def probe_database(settings: GuideAPISettings) -> CheckResult:
    """Time one round trip to the database; errors become an unhealthy result."""
    started = time.monotonic()
    try:
        await asyncio.wait_for(asyncio.to_thread(_select_one, settings), PROBE_TIMEOUT_S)
    except TimeoutError:
        return CheckResult(status="unhealthy", error="timeout")
    except Exception as exc:  # noqa: BLE001
        return CheckResult(
            status="unhealthy",
            latency_ms=round((time.monotonic() - started) * 1000, 2),
            error=str(exc)[:200],
        )
    return CheckResult(status="healthy", latency_ms=round((time.monotonic() - started) * 1000, 2))


@router.get("", response_model=HealthResponse)
async def health(settings: GuideAPISettings = Depends(get_settings)) -> JSONResponse:
    database = await probe_database(settings)
    body = HealthResponse(
        status=database.status,
        version=settings.api_version,
        uptime_s=round(time.monotonic() - _BOOTED, 1),
        checks={"database": database},
    )
    return JSONResponse(body.model_dump(), status_code=200 if database.status == "healthy" else 503)


@router.get("/live", response_model=LivenessResponse)
async def liveness() -> LivenessResponse:
    return LivenessResponse()
