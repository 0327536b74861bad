"""Service and dependency health endpoint."""

from typing import Any

from fastapi import APIRouter, Request

from app.database.connection import check_connection

router = APIRouter(prefix="/api/health", tags=["health"])


def _get_worker_status(request: Request) -> str:
    pool = getattr(request.app.state, "worker_pool", None)
    if pool is None:
        return "not_initialized"
    return "running" if pool.running else "stopped"


@router.get("")
def health_check(request: Request) -> dict[str, Any]:
    """Report service health along with database and worker state."""
    database_status = "connected" if check_connection() else "disconnected"
    return {
        "status": "OK",
        "database": database_status,
        "workers": _get_worker_status(request),
    }
