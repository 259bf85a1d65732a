"""
Health check endpoints.

- /: Public health check, plain "OK"
- /healthz: Liveness probe with service details
"""

from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Request

router = APIRouter()


@router.get(
    "/",
    summary="Health check",
    description="Public health check. Does not require an API key.",
)
async def root() -> str:
    return "OK"


@router.get(
    "/healthz",
    status_code=200,
    summary="Liveness probe",
)
async def liveness_check(request: Request) -> Dict[str, Any]:
    """
    Liveness probe - always returns 200 if service is alive.
    """
    store = getattr(request.app.state, 'user_store', None)
    return {
        "status": "alive",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "service": "userapi",
        "version": request.app.version,
        "users": len(store) if store is not None else 0,
    }
