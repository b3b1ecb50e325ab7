"""Database helpers for the `companies` table.

This module provides:
- list/get/create/delete of companies
- set_company_status(): activate or deactivate a company
- insert_company(): statement helper for callers that own the transaction
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy import text
from sqlalchemy.engine import Connection

from shopwatch.db import Database

logger = logging.getLogger(__name__)

COMPANY_FIELDS = ("name", "url", "domain", "industry", "description")

_INSERT_SQL = text(
    """
    INSERT INTO companies (name, url, domain, industry, description)
    VALUES (:name, :url, :domain, :industry, :description)
    RETURNING *
    """
)


def company_params(record: Mapping[str, Any]) -> Dict[str, Any]:
    return {field: record.get(field) for field in COMPANY_FIELDS}


def insert_company(conn: Connection, record: Mapping[str, Any]) -> Dict[str, Any]:
    row = conn.execute(_INSERT_SQL, company_params(record)).mappings().one()
    return dict(row)


def list_companies(db: Database) -> List[Dict[str, Any]]:
    with db.connect() as conn:
        rows = conn.execute(text("SELECT * FROM companies ORDER BY id")).mappings().all()
    return [dict(r) for r in rows]


def get_company(db: Database, company_id: int) -> Optional[Dict[str, Any]]:
    with db.connect() as conn:
        row = conn.execute(
            text("SELECT * FROM companies WHERE id = :company_id"),
            {"company_id": company_id},
        ).mappings().first()
    return dict(row) if row else None


def create_company(db: Database, record: Mapping[str, Any]) -> Dict[str, Any]:
    with db.begin() as conn:
        company = insert_company(conn, record)
    logger.info(f"db_companies: created company id={company['id']}, name={company['name']}")
    return company


def set_company_status(db: Database, company_id: int, is_active: bool) -> Optional[Dict[str, Any]]:
    """Return the updated row, or None when the company does not exist."""
    with db.begin() as conn:
        row = conn.execute(
            text(
                """
                UPDATE companies
                SET is_active = :is_active,
                    updated_at = now()
                WHERE id = :company_id
                RETURNING *
                """
            ),
            {"company_id": company_id, "is_active": is_active},
        ).mappings().first()
    return dict(row) if row else None


def delete_company(db: Database, company_id: int) -> bool:
    """Delete a company; products and monitoring config go with it (ON DELETE CASCADE)."""
    with db.begin() as conn:
        row = conn.execute(
            text("DELETE FROM companies WHERE id = :company_id RETURNING id"),
            {"company_id": company_id},
        ).first()
    if row:
        logger.info(f"db_companies: deleted company id={company_id}")
    return row is not None
