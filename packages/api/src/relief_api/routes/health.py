# This project was developed with assistance from AI tools.
"""Liveness / readiness endpoint."""

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from relief_db import DatabaseService, get_db_service

router = APIRouter()


@router.get("/")
async def health(db_service: DatabaseService = Depends(get_db_service)) -> JSONResponse:
    """Report service and database health. Returns 503 when the database is unreachable."""
    db_ok = await db_service.health_check()
    body = {"status": "ok" if db_ok else "degraded", "database": "ok" if db_ok else "unavailable"}
    code = status.HTTP_200_OK if db_ok else status.HTTP_503_SERVICE_UNAVAILABLE
    return JSONResponse(status_code=code, content=body)
