"""Stats, database setup and health endpoints."""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from shopwatch.db import Database, get_database
from shopwatch.db_schema import ensure_schema
from shopwatch.db_stats import get_stats
from shopwatch.schemas.system import SetupDatabaseResponse, StatsResponse

router = APIRouter(tags=["system"])

logger = logging.getLogger(__name__)


@router.get("/stats", response_model=StatsResponse)
async def get_stats_endpoint(db: Database = Depends(get_database)):
    try:
        stats = await run_in_threadpool(get_stats, db)
    except Exception:
        logger.exception("Error fetching stats")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch stats",
        )
    return StatsResponse(**stats)


@router.post("/setup-database", response_model=SetupDatabaseResponse)
async def setup_database_endpoint(db: Database = Depends(get_database)):
    """Create missing tables, indexes and the monitoring view (idempotent)."""
    try:
        summary = await run_in_threadpool(ensure_schema, db)
    except Exception:
        logger.exception("Error setting up database")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to setup database",
        )
    return SetupDatabaseResponse(message="Database setup completed successfully", **summary)


@router.get("/health")
async def health_endpoint(db: Database = Depends(get_database)):
    timestamp = datetime.now(timezone.utc).isoformat()
    try:
        await run_in_threadpool(db.ping)
    except Exception as e:
        logger.error(f"Health check failed: {e}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"status": "unhealthy", "error": type(e).__name__, "timestamp": timestamp},
        )
    return {"status": "healthy", "timestamp": timestamp}
