"""Products router."""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status
from starlette.concurrency import run_in_threadpool

from shopwatch.db import Database, get_database
from shopwatch.db_products import (
    DuplicateProductError,
    create_product,
    delete_product,
    list_products,
)
from shopwatch.schemas.products import (
    ProductBulkCreate,
    ProductBulkResponse,
    ProductCreate,
    ProductResponse,
    SkippedProduct,
)
from shopwatch.schemas.system import MessageResponse
from shopwatch.services.ingestion import InvalidRecordsError, ingest_products

router = APIRouter(prefix="/products", tags=["products"])

logger = logging.getLogger(__name__)


@router.get("", response_model=List[ProductResponse])
async def list_products_endpoint(
    company_id: Optional[int] = Query(None, description="Only products of this company"),
    db: Database = Depends(get_database),
):
    """List products with their company name."""
    try:
        return await run_in_threadpool(list_products, db, company_id)
    except Exception:
        logger.exception("Error fetching products")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch products",
        )


@router.post("", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
async def create_product_endpoint(body: ProductCreate, db: Database = Depends(get_database)):
    if body.company_id is None or not body.title or not body.title.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Product title and company ID are required",
        )
    try:
        return await run_in_threadpool(create_product, db, body.model_dump())
    except DuplicateProductError as e:
        logger.info(f"Duplicate product rejected: {e}")
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Product with this Shopify ID already exists for this company",
        )
    except Exception:
        logger.exception(f"Error adding product company_id={body.company_id}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to add product",
        )


@router.post("/bulk", response_model=ProductBulkResponse, status_code=status.HTTP_201_CREATED)
async def bulk_create_products_endpoint(body: ProductBulkCreate, db: Database = Depends(get_database)):
    """Add products in one transaction.

    Products whose (company_id, shopify_product_id) is already stored, or
    repeated earlier in the batch, are skipped and reported. Any other failure
    rolls back the whole batch.
    """
    if body.products is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Products array is required")

    records = [p.model_dump() for p in body.products]
    try:
        result = await run_in_threadpool(ingest_products, db, records)
    except InvalidRecordsError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception:
        logger.exception(f"Error bulk adding products (count={len(records)})")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to add products",
        )

    return ProductBulkResponse(
        products=result.accepted,
        added=result.added_count,
        skipped=result.skipped_count,
        skipped_products=[SkippedProduct(product=s.record, reason=s.reason) for s in result.skipped],
    )


@router.delete("/{product_id}", response_model=MessageResponse)
async def delete_product_endpoint(
    product_id: int = Path(..., description="Product ID"),
    db: Database = Depends(get_database),
):
    try:
        deleted = await run_in_threadpool(delete_product, db, product_id)
    except Exception:
        logger.exception(f"Error deleting product id={product_id}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete product",
        )
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")
    return MessageResponse(message="Product deleted successfully")
