from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from app.config import settings
from app.infrastructure.db.database import get_db

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/health")
async def health(db: AsyncSession = Depends(get_db)):
    """Liveness plus a real database round trip"""
    db_error = None
    try:
        await db.execute(text("SELECT 1"))
        db_status = "connected"
    except Exception as exc:
        logger.error(f"Health check database error: {exc}")
        await db.rollback()
        db_status = "error"
        db_error = str(exc)

    return {
        "status": "healthy" if db_status == "connected" else "degraded",
        "service": "Investment Tracker",
        "environment": settings.APP_ENV,
        "services": {
            "api": "running",
            "database": db_status,
        },
        "database_error": db_error,
    }
