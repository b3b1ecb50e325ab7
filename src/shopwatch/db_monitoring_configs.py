"""Database helpers for `monitoring_configs` and the active companies view."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from sqlalchemy import text
from sqlalchemy.engine import Connection

from shopwatch.db import Database
from shopwatch.db_schema import ACTIVE_COMPANIES_VIEW

# One statement, keyed by the unique company_id: concurrent saves for the
# same company serialize on the constraint instead of creating a second row.
_UPSERT_SQL = text(
    """
    INSERT INTO monitoring_configs
        (company_id, days_back, max_products, check_frequency, is_enabled)
    VALUES
        (:company_id, :days_back, :max_products, :check_frequency, :is_enabled)
    ON CONFLICT (company_id)
    DO UPDATE SET
        days_back = EXCLUDED.days_back,
        max_products = EXCLUDED.max_products,
        check_frequency = EXCLUDED.check_frequency,
        is_enabled = EXCLUDED.is_enabled,
        updated_at = now()
    RETURNING *
    """
)


def upsert_monitoring_config(
    conn: Connection,
    company_id: int,
    days_back: int,
    max_products: int,
    check_frequency: str,
    is_enabled: bool,
) -> Dict[str, Any]:
    row = conn.execute(
        _UPSERT_SQL,
        {
            "company_id": company_id,
            "days_back": days_back,
            "max_products": max_products,
            "check_frequency": check_frequency,
            "is_enabled": is_enabled,
        },
    ).mappings().one()
    return dict(row)


def list_monitoring_configs(db: Database) -> List[Dict[str, Any]]:
    with db.connect() as conn:
        rows = conn.execute(
            text(
                """
                SELECT mc.*, c.name AS company_name
                FROM monitoring_configs mc
                LEFT JOIN companies c ON mc.company_id = c.id
                ORDER BY mc.company_id
                """
            )
        ).mappings().all()
    return [dict(r) for r in rows]


def get_monitoring_config(db: Database, company_id: int) -> Optional[Dict[str, Any]]:
    with db.connect() as conn:
        row = conn.execute(
            text("SELECT * FROM monitoring_configs WHERE company_id = :company_id"),
            {"company_id": company_id},
        ).mappings().first()
    return dict(row) if row else None


def delete_monitoring_config(db: Database, company_id: int) -> bool:
    with db.begin() as conn:
        row = conn.execute(
            text("DELETE FROM monitoring_configs WHERE company_id = :company_id RETURNING id"),
            {"company_id": company_id},
        ).first()
    return row is not None


def list_active_companies(db: Database) -> List[Dict[str, Any]]:
    """Active companies with effective monitoring settings, from the view."""
    with db.connect() as conn:
        rows = conn.execute(
            text(f"SELECT * FROM {ACTIVE_COMPANIES_VIEW} ORDER BY id")
        ).mappings().all()
    return [dict(r) for r in rows]
