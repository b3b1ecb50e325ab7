"""Dashboard counters across companies, products and monitoring configs."""

from __future__ import annotations

from typing import Dict

from sqlalchemy import text

from shopwatch.db import Database

_STATS_SQL = text(
    """
    SELECT
        (SELECT COUNT(*) FROM companies) AS total_companies,
        (SELECT COUNT(*) FROM products) AS total_products,
        (SELECT COUNT(*) FROM products WHERE is_new_product = TRUE) AS new_products,
        (SELECT COUNT(*) FROM monitoring_configs WHERE is_enabled = TRUE) AS active_configs
    """
)


def get_stats(db: Database) -> Dict[str, int]:
    with db.connect() as conn:
        row = conn.execute(_STATS_SQL).mappings().one()
    return {key: int(value) for key, value in row.items()}
