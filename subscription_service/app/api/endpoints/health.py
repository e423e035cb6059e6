"""
Health endpoint.

Reports whether the database answers a trivial query.  Used by
container orchestration for readiness checks.
"""

from fastapi import APIRouter, HTTPException, Request, status

from ...core.db import ping

router = APIRouter()


@router.get("/health")
async def health(request: Request) -> dict:
    """Return ``{"status": "ok"}`` or 503 when the database is unreachable."""
    timeout = request.app.state.settings.db_connect_timeout
    if not await ping(request.app.state.pool, timeout):
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="database unavailable")
    return {"status": "ok"}
