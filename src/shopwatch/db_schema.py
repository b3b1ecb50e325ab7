"""Declarative schema for companies, products and monitoring configs.

`ensure_schema()` applies the whole definition in one transaction:
- tables are created when the catalog does not list them
- existing tables get missing non-key columns and unique constraints added
- product indexes are created with IF NOT EXISTS
- the `active_companies_monitoring` view is replaced

A second call on a matching schema issues no table DDL, so repeated runs
converge instead of failing.
"""

from __future__ import annotations

import json
import logging
import sys
from dataclasses import dataclass
from typing import Any, Dict, List, Tuple

from sqlalchemy import inspect, text
from sqlalchemy.engine import Connection

from shopwatch.db import Database

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Table:
    name: str
    columns: Tuple[Tuple[str, str], ...]
    unique: Tuple[Tuple[str, Tuple[str, ...]], ...] = ()

    def create_sql(self) -> str:
        parts = [f"{column} {ddl}" for column, ddl in self.columns]
        parts += [
            f"CONSTRAINT {constraint} UNIQUE ({', '.join(cols)})"
            for constraint, cols in self.unique
        ]
        body = ",\n    ".join(parts)
        return f"CREATE TABLE IF NOT EXISTS {self.name} (\n    {body}\n)"


COMPANIES = Table(
    name="companies",
    columns=(
        ("id", "SERIAL PRIMARY KEY"),
        ("name", "VARCHAR(255) NOT NULL"),
        ("url", "TEXT"),
        ("domain", "VARCHAR(255)"),
        ("industry", "VARCHAR(255)"),
        ("description", "TEXT"),
        ("is_active", "BOOLEAN NOT NULL DEFAULT TRUE"),
        ("created_at", "TIMESTAMPTZ NOT NULL DEFAULT now()"),
        ("updated_at", "TIMESTAMPTZ NOT NULL DEFAULT now()"),
    ),
    unique=(("uq_companies_name", ("name",)),),
)

PRODUCTS = Table(
    name="products",
    columns=(
        ("id", "SERIAL PRIMARY KEY"),
        ("company_id", "INTEGER NOT NULL REFERENCES companies(id) ON DELETE CASCADE"),
        ("shopify_product_id", "BIGINT"),
        ("title", "TEXT NOT NULL"),
        ("handle", "VARCHAR(255)"),
        ("product_type", "VARCHAR(255)"),
        ("vendor", "VARCHAR(255)"),
        ("price", "NUMERIC(12, 2)"),
        ("created_at_shopify", "TIMESTAMPTZ"),
        ("days_old_when_found", "INTEGER"),
        ("url", "TEXT"),
        ("image_url", "TEXT"),
        ("tags", "TEXT"),
        ("first_seen", "TIMESTAMPTZ NOT NULL DEFAULT now()"),
        ("last_seen", "TIMESTAMPTZ NOT NULL DEFAULT now()"),
        ("is_new_product", "BOOLEAN NOT NULL DEFAULT TRUE"),
    ),
    unique=(("uq_products_company_shopify_id", ("company_id", "shopify_product_id")),),
)

MONITORING_CONFIGS = Table(
    name="monitoring_configs",
    columns=(
        ("id", "SERIAL PRIMARY KEY"),
        ("company_id", "INTEGER NOT NULL REFERENCES companies(id) ON DELETE CASCADE"),
        ("days_back", "INTEGER NOT NULL DEFAULT 7"),
        ("max_products", "INTEGER NOT NULL DEFAULT 50"),
        ("check_frequency", "VARCHAR(20) NOT NULL DEFAULT 'weekly'"),
        ("is_enabled", "BOOLEAN NOT NULL DEFAULT TRUE"),
        ("last_monitored", "TIMESTAMPTZ"),
        ("created_at", "TIMESTAMPTZ NOT NULL DEFAULT now()"),
        ("updated_at", "TIMESTAMPTZ NOT NULL DEFAULT now()"),
    ),
    unique=(("uq_monitoring_configs_company_id", ("company_id",)),),
)

# Creation order follows foreign keys.
TABLES: Tuple[Table, ...] = (COMPANIES, PRODUCTS, MONITORING_CONFIGS)

INDEXES: Tuple[str, ...] = (
    "CREATE INDEX IF NOT EXISTS idx_products_company_id ON products(company_id)",
    "CREATE INDEX IF NOT EXISTS idx_products_shopify_product_id ON products(shopify_product_id)",
    "CREATE INDEX IF NOT EXISTS idx_products_is_new_product ON products(is_new_product)",
    "CREATE INDEX IF NOT EXISTS idx_products_first_seen ON products(first_seen)",
)

ACTIVE_COMPANIES_VIEW = "active_companies_monitoring"

ACTIVE_COMPANIES_VIEW_SQL = f"""
    CREATE OR REPLACE VIEW {ACTIVE_COMPANIES_VIEW} AS
    SELECT
        c.id,
        c.name,
        c.url,
        c.domain,
        c.industry,
        c.description,
        COALESCE(mc.days_back, 7) AS days_back,
        COALESCE(mc.max_products, 50) AS max_products,
        COALESCE(mc.check_frequency, 'weekly') AS check_frequency,
        COALESCE(mc.is_enabled, TRUE) AS is_enabled,
        mc.last_monitored
    FROM companies c
    LEFT JOIN monitoring_configs mc ON mc.company_id = c.id
    WHERE c.is_active = TRUE
      AND COALESCE(mc.is_enabled, TRUE) = TRUE
"""


def _repair_table(conn: Connection, table: Table) -> List[str]:
    """Add declared columns and unique constraints an existing table lacks."""
    inspector = inspect(conn)
    repairs: List[str] = []

    existing_columns = {col["name"] for col in inspector.get_columns(table.name)}
    for column, ddl in table.columns:
        if column in existing_columns or "PRIMARY KEY" in ddl:
            continue
        conn.execute(text(f"ALTER TABLE {table.name} ADD COLUMN IF NOT EXISTS {column} {ddl}"))
        repairs.append(f"{table.name}.{column}")

    # Match by column set: constraints created elsewhere carry other names.
    existing_unique = {frozenset(uc["column_names"]) for uc in inspector.get_unique_constraints(table.name)}
    # Partial indexes cannot back ON CONFLICT (cols) inference.
    existing_unique |= {
        frozenset(ix["column_names"])
        for ix in inspector.get_indexes(table.name)
        if ix.get("unique") and not ix.get("dialect_options", {}).get("postgresql_where")
    }
    for constraint, cols in table.unique:
        if frozenset(cols) in existing_unique:
            continue
        conn.execute(
            text(f"ALTER TABLE {table.name} ADD CONSTRAINT {constraint} UNIQUE ({', '.join(cols)})")
        )
        repairs.append(f"{table.name}.{constraint}")

    return repairs


def apply_schema(conn: Connection) -> Dict[str, Any]:
    """Apply the schema on a connection whose transaction the caller owns."""
    tables: Dict[str, str] = {}
    repairs: List[str] = []

    for table in TABLES:
        if inspect(conn).has_table(table.name):
            repairs.extend(_repair_table(conn, table))
            tables[table.name] = "exists"
        else:
            conn.execute(text(table.create_sql()))
            tables[table.name] = "created"

    for stmt in INDEXES:
        conn.execute(text(stmt))

    conn.execute(text(ACTIVE_COMPANIES_VIEW_SQL))

    return {
        "tables": tables,
        "indexes": "ready",
        "views": {ACTIVE_COMPANIES_VIEW: "ready"},
        "repairs": repairs,
    }


def ensure_schema(db: Database) -> Dict[str, Any]:
    """Create or converge the schema atomically.

    Any failure rolls back every statement of this call and propagates.
    """
    with db.begin() as conn:
        summary = apply_schema(conn)

    logger.info(f"ensure_schema: tables={summary['tables']} repairs={summary['repairs']}")
    return summary


def main() -> int:
    logging.basicConfig(level=logging.INFO)
    db = Database.from_settings()
    db.init()
    try:
        summary = ensure_schema(db)
    finally:
        db.dispose()
    print(json.dumps(summary, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
