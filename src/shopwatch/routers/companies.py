"""Companies router."""

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Path, status
from starlette.concurrency import run_in_threadpool

from shopwatch.db import Database, get_database
from shopwatch.db_companies import (
    create_company,
    delete_company,
    get_company,
    list_companies,
    set_company_status,
)
from shopwatch.schemas.companies import (
    CompanyBulkCreate,
    CompanyBulkResponse,
    CompanyCreate,
    CompanyResponse,
    CompanyStatusUpdate,
)
from shopwatch.schemas.system import MessageResponse
from shopwatch.services.ingestion import InvalidRecordsError, ingest_companies

router = APIRouter(prefix="/companies", tags=["companies"])

logger = logging.getLogger(__name__)


def _server_error(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)


@router.get("", response_model=List[CompanyResponse])
async def list_companies_endpoint(db: Database = Depends(get_database)):
    try:
        return await run_in_threadpool(list_companies, db)
    except Exception:
        logger.exception("Error fetching companies")
        raise _server_error("Failed to fetch companies")


@router.get("/{company_id}", response_model=CompanyResponse)
async def get_company_endpoint(
    company_id: int = Path(..., description="Company ID"),
    db: Database = Depends(get_database),
):
    try:
        company = await run_in_threadpool(get_company, db, company_id)
    except Exception:
        logger.exception(f"Error fetching company id={company_id}")
        raise _server_error("Failed to fetch company")
    if not company:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Company not found")
    return company


@router.post("", response_model=CompanyResponse, status_code=status.HTTP_201_CREATED)
async def create_company_endpoint(body: CompanyCreate, db: Database = Depends(get_database)):
    if not body.name or not body.name.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Company name is required")
    try:
        return await run_in_threadpool(create_company, db, body.model_dump())
    except Exception:
        logger.exception(f"Error adding company name={body.name}")
        raise _server_error("Failed to add company")


@router.post("/bulk", response_model=CompanyBulkResponse, status_code=status.HTTP_201_CREATED)
async def bulk_create_companies_endpoint(body: CompanyBulkCreate, db: Database = Depends(get_database)):
    """Add companies in one transaction; any failure rolls back all of them."""
    if body.companies is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Companies array is required")

    records = [c.model_dump() for c in body.companies]
    try:
        companies = await run_in_threadpool(ingest_companies, db, records)
    except InvalidRecordsError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception:
        logger.exception(f"Error bulk adding companies (count={len(records)})")
        raise _server_error("Failed to add companies")
    return CompanyBulkResponse(companies=companies, count=len(companies))


@router.patch("/{company_id}/status", response_model=CompanyResponse)
async def update_company_status_endpoint(
    body: CompanyStatusUpdate,
    company_id: int = Path(..., description="Company ID"),
    db: Database = Depends(get_database),
):
    if body.is_active is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="is_active is required")
    try:
        company = await run_in_threadpool(set_company_status, db, company_id, body.is_active)
    except Exception:
        logger.exception(f"Error updating status of company id={company_id}")
        raise _server_error("Failed to update company status")
    if not company:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Company not found")
    return company


@router.delete("/{company_id}", response_model=MessageResponse)
async def delete_company_endpoint(
    company_id: int = Path(..., description="Company ID"),
    db: Database = Depends(get_database),
):
    try:
        deleted = await run_in_threadpool(delete_company, db, company_id)
    except Exception:
        logger.exception(f"Error deleting company id={company_id}")
        raise _server_error("Failed to delete company")
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Company not found")
    return MessageResponse(message="Company deleted successfully")
