"""Health check endpoints."""

import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text

from carquery.api.deps import SessionDep

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("")
async def health_check():
    """Basic health check - just confirms the service is running."""
    return {"status": "ok"}


@router.get("/db")
async def health_check_db(session: SessionDep):
    """Health check with database connectivity."""
    try:
        await session.execute(text("SELECT 1"))
        return {"status": "ok", "database": "connected"}
    except Exception as e:
        logger.error(f"Database health check failed: {e!r}")
        return JSONResponse(
            status_code=503,
            content={"status": "error", "database": "disconnected"},
        )


@router.get("/ready")
async def readiness_check(request: Request, session: SessionDep):
    """Readiness check for load balancers.

    Returns 503 when the database is unreachable or the token sweeper has died.
    """
    errors = {}

    try:
        await session.execute(text("SELECT 1"))
        db_status = "connected"
    except Exception as e:
        logger.error(f"Database readiness check failed: {e!r}")
        db_status = "disconnected"
        errors["database"] = str(e)

    sweeper = getattr(request.app.state, "token_sweeper", None)
    if sweeper is None:
        sweeper_status = "not_started"
    elif sweeper.done():
        sweeper_status = "stopped"
        errors["token_sweeper"] = "Session token sweeper is not running"
    else:
        sweeper_status = "running"

    response = {
        "status": "ok" if not errors else "degraded",
        "database": db_status,
        "token_sweeper": sweeper_status,
    }

    if errors:
        return JSONResponse(status_code=503, content=response)
    return response
