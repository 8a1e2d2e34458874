"""
stake_pool_updater.api.routers.health

Health and readiness endpoints.

Responsibilities:
- Provide liveness probe (`/healthz`).
- Provide readiness probe (`/readyz`) with RPC connectivity validation.
"""

from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from stake_pool_updater.errors import TransportError
from stake_pool_updater.observability.logging import get_logger

router = APIRouter()
log = get_logger(__name__)


@router.get("/healthz")
async def healthz() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/readyz")
async def readyz(request: Request):
    # Readiness: the RPC node answers and the background watcher is alive.
    try:
        info = await request.app.state.transport.get_epoch_info()
    except TransportError as e:
        log.warning("readiness_rpc_unavailable", error=str(e))
        return JSONResponse(status_code=503, content={"status": "rpc_unavailable"})

    watcher = request.app.state.watcher
    return {"status": "ready", "epoch": info.epoch, "watcher_running": watcher.running}


# --- Module Notes -----------------------------------------------------------
# Kubernetes typically uses /healthz for liveness and /readyz for readiness gating.
