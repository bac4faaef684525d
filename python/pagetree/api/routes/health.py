"""Health check endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.orm import Session

from pagetree.api.deps import get_db
from pagetree.db.session import store_errors
from pagetree.responses import success_response

router = APIRouter()


@router.get("/health")
async def health_check() -> dict:
    """Liveness check endpoint.

    Returns 200 if the process is running.
    Does not check database or other dependencies.
    """
    return success_response({"status": "ok"})


@router.get("/health/ready")
def readiness_check(db: Annotated[Session, Depends(get_db)]) -> dict:
    """Readiness check endpoint.

    Runs one trivial query; a store outage surfaces as 503 E_STORE_UNAVAILABLE.
    """
    with store_errors():
        db.execute(text("SELECT 1"))
    return success_response({"status": "ready"})
