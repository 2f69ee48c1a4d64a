"""
Health check endpoint for deployment monitoring.
"""
import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.orm import Session

from jobhunter.core.timeutils import utcnow
from jobhunter.db.session import get_db

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["System"])


@router.get("/health")
def health_check(db: Session = Depends(get_db)):
    """
    Returns 200 if the API is healthy and database is accessible, 503 otherwise.
    """
    try:
        db.execute(text("SELECT 1"))
        db_status = "connected"
    except Exception as e:
        logger.error(f"Health check database error: {e}")
        db_status = "error"

    healthy = db_status == "connected"
    return JSONResponse(
        status_code=200 if healthy else 503,
        content={
            "status": "healthy" if healthy else "degraded",
            "timestamp": utcnow().isoformat(),
            "database": db_status,
            "service": "AI JobHunter API",
            "version": "1.0.0",
        },
    )
