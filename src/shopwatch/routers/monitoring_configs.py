"""Monitoring configs router."""

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Path, status
from starlette.concurrency import run_in_threadpool

from shopwatch.db import Database, get_database
from shopwatch.db_monitoring_configs import (
    delete_monitoring_config,
    get_monitoring_config,
    list_active_companies,
    list_monitoring_configs,
)
from shopwatch.schemas.monitoring import (
    ActiveCompanyResponse,
    MonitoringConfigResponse,
    MonitoringConfigSave,
)
from shopwatch.schemas.system import MessageResponse
from shopwatch.services.ingestion import save_monitoring_config

router = APIRouter(tags=["monitoring"])

logger = logging.getLogger(__name__)


@router.get("/monitoring-configs", response_model=List[MonitoringConfigResponse])
async def list_monitoring_configs_endpoint(db: Database = Depends(get_database)):
    try:
        return await run_in_threadpool(list_monitoring_configs, db)
    except Exception:
        logger.exception("Error fetching monitoring configs")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch monitoring configs",
        )


@router.get("/monitoring-configs/{company_id}", response_model=MonitoringConfigResponse)
async def get_monitoring_config_endpoint(
    company_id: int = Path(..., description="Company ID"),
    db: Database = Depends(get_database),
):
    try:
        config = await run_in_threadpool(get_monitoring_config, db, company_id)
    except Exception:
        logger.exception(f"Error fetching monitoring config company_id={company_id}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch monitoring config",
        )
    if not config:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Monitoring config not found")
    return config


@router.post("/monitoring-configs", response_model=MonitoringConfigResponse)
async def save_monitoring_config_endpoint(body: MonitoringConfigSave, db: Database = Depends(get_database)):
    """Create or overwrite the monitoring config of a company (upsert on company_id)."""
    if body.company_id is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Company ID is required")
    try:
        return await run_in_threadpool(
            save_monitoring_config,
            db,
            body.company_id,
            body.days_back,
            body.max_products,
            body.check_frequency,
            body.is_enabled,
        )
    except Exception:
        logger.exception(f"Error saving monitoring config company_id={body.company_id}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to save monitoring config",
        )


@router.delete("/monitoring-configs/{company_id}", response_model=MessageResponse)
async def delete_monitoring_config_endpoint(
    company_id: int = Path(..., description="Company ID"),
    db: Database = Depends(get_database),
):
    try:
        deleted = await run_in_threadpool(delete_monitoring_config, db, company_id)
    except Exception:
        logger.exception(f"Error deleting monitoring config company_id={company_id}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete monitoring config",
        )
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Monitoring config not found")
    return MessageResponse(message="Monitoring config deleted successfully")


@router.get("/active-companies", response_model=List[ActiveCompanyResponse])
async def list_active_companies_endpoint(db: Database = Depends(get_database)):
    """Active companies due for monitoring, with effective settings."""
    try:
        return await run_in_threadpool(list_active_companies, db)
    except Exception:
        logger.exception("Error fetching active companies")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch active companies",
        )
