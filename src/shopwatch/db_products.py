"""Database helpers for the `products` table.

This module provides:
- list_products(): products joined with their company name
- create_product(): single insert, duplicate external ids raise DuplicateProductError
- insert_product_if_absent(): INSERT ... ON CONFLICT DO NOTHING used by bulk ingestion
- delete_product()

Products are unique per (company_id, shopify_product_id); rows without a
Shopify id never conflict.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy import text
from sqlalchemy.engine import Connection
from sqlalchemy.exc import IntegrityError

from shopwatch.db import Database, is_unique_violation

logger = logging.getLogger(__name__)

PRODUCT_FIELDS = (
    "company_id",
    "shopify_product_id",
    "title",
    "handle",
    "product_type",
    "vendor",
    "price",
    "created_at_shopify",
    "days_old_when_found",
    "url",
    "image_url",
    "tags",
    "is_new_product",
)

_INSERT_COLUMNS = ", ".join(PRODUCT_FIELDS)

_INSERT_VALUES = """
    :company_id, :shopify_product_id, :title, :handle, :product_type, :vendor,
    :price, :created_at_shopify, :days_old_when_found, :url, :image_url, :tags,
    COALESCE(:is_new_product, TRUE)
"""

_INSERT_SQL = text(
    f"""
    INSERT INTO products ({_INSERT_COLUMNS})
    VALUES ({_INSERT_VALUES})
    RETURNING *
    """
)

_INSERT_IF_ABSENT_SQL = text(
    f"""
    INSERT INTO products ({_INSERT_COLUMNS})
    VALUES ({_INSERT_VALUES})
    ON CONFLICT (company_id, shopify_product_id) DO NOTHING
    RETURNING *
    """
)


class DuplicateProductError(Exception):
    """A product with the same Shopify id already exists for the company."""


def derive_days_old(created_at_shopify: Optional[datetime], found_at: datetime) -> Optional[int]:
    """Whole days between publication on the store and discovery, never negative."""
    if created_at_shopify is None:
        return None
    if created_at_shopify.tzinfo is None:
        created_at_shopify = created_at_shopify.replace(tzinfo=timezone.utc)
    return max((found_at - created_at_shopify).days, 0)


def product_params(record: Mapping[str, Any], found_at: Optional[datetime] = None) -> Dict[str, Any]:
    """Build bind parameters for one product record."""
    params = {field: record.get(field) for field in PRODUCT_FIELDS}

    tags = params["tags"]
    if isinstance(tags, (list, tuple)):
        params["tags"] = ", ".join(str(t) for t in tags)

    if params["days_old_when_found"] is None:
        created = params["created_at_shopify"]
        if isinstance(created, str):
            created = datetime.fromisoformat(created.replace("Z", "+00:00"))
        params["days_old_when_found"] = derive_days_old(created, found_at or datetime.now(timezone.utc))

    return params


def insert_product(conn: Connection, record: Mapping[str, Any]) -> Dict[str, Any]:
    return dict(conn.execute(_INSERT_SQL, product_params(record)).mappings().one())


def insert_product_if_absent(conn: Connection, record: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
    """Insert unless (company_id, shopify_product_id) already exists.

    Returns the new row, or None when the pair is taken. Other failures raise.
    """
    row = conn.execute(_INSERT_IF_ABSENT_SQL, product_params(record)).mappings().first()
    return dict(row) if row else None


def list_products(db: Database, company_id: Optional[int] = None) -> List[Dict[str, Any]]:
    sql = """
        SELECT p.*, c.name AS company_name
        FROM products p
        LEFT JOIN companies c ON p.company_id = c.id
    """
    params: Dict[str, Any] = {}
    if company_id is not None:
        sql += " WHERE p.company_id = :company_id"
        params["company_id"] = company_id
    sql += " ORDER BY p.id"

    with db.connect() as conn:
        rows = conn.execute(text(sql), params).mappings().all()
    return [dict(r) for r in rows]


def create_product(db: Database, record: Mapping[str, Any]) -> Dict[str, Any]:
    try:
        with db.begin() as conn:
            product = insert_product(conn, record)
    except IntegrityError as e:
        if is_unique_violation(e, table="products"):
            raise DuplicateProductError(
                f"shopify_product_id={record.get('shopify_product_id')} "
                f"already exists for company_id={record.get('company_id')}"
            ) from e
        raise
    logger.info(f"db_products: created product id={product['id']}, company_id={product['company_id']}")
    return product


def delete_product(db: Database, product_id: int) -> bool:
    with db.begin() as conn:
        row = conn.execute(
            text("DELETE FROM products WHERE id = :product_id RETURNING id"),
            {"product_id": product_id},
        ).first()
    return row is not None
