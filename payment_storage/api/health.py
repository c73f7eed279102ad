"""
Health endpoints.

Lightweight liveness and readiness checks without exposing secrets.
"""
from fastapi import APIRouter
from fastapi.responses import JSONResponse

from payment_storage.core.database import check_connection, get_database_url

root_router = APIRouter(tags=["health"])


@root_router.get("/healthz")
def healthz():
    """Lightweight liveness check (no deps)."""
    return {"status": "ok"}


@root_router.get("/readyz")
def readyz():
    """Readiness check: storage connectivity when a database is configured."""
    if not get_database_url():
        return {"status": "ok", "storage": "memory"}
    if check_connection():
        return {"status": "ok", "storage": "sql"}
    return JSONResponse(status_code=503, content={"status": "unavailable", "storage": "sql"})
