"""Bulk ingestion and monitoring-config saves.

Product ingestion runs periodically over overlapping time windows, so a
product already stored for the same (company_id, shopify_product_id) is an
expected outcome: it is reported as skipped and the batch goes on. Every
other store failure aborts the whole batch.

Company ingestion has no such tolerance: one failed insert rolls back all of
them.

Each batch runs in one transaction opened with `Database.begin()`, which
returns the connection to the pool on commit and on rollback.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from shopwatch.db import Database
from shopwatch.db_companies import insert_company
from shopwatch.db_monitoring_configs import upsert_monitoring_config
from shopwatch.db_products import insert_product_if_absent

logger = logging.getLogger(__name__)

DUPLICATE_SHOPIFY_ID = "Duplicate Shopify ID"

DEFAULT_DAYS_BACK = 7
DEFAULT_MAX_PRODUCTS = 50
DEFAULT_CHECK_FREQUENCY = "weekly"
DEFAULT_IS_ENABLED = True


@dataclass(frozen=True)
class Accepted:
    row: Dict[str, Any]


@dataclass(frozen=True)
class Skipped:
    record: Dict[str, Any]
    reason: str


Outcome = Union[Accepted, Skipped]


@dataclass
class BatchResult:
    """Per-record outcomes of one ingestion batch, in input order."""

    outcomes: List[Outcome] = field(default_factory=list)

    @property
    def accepted(self) -> List[Dict[str, Any]]:
        return [o.row for o in self.outcomes if isinstance(o, Accepted)]

    @property
    def skipped(self) -> List[Skipped]:
        return [o for o in self.outcomes if isinstance(o, Skipped)]

    @property
    def added_count(self) -> int:
        return len(self.accepted)

    @property
    def skipped_count(self) -> int:
        return len(self.skipped)


class InvalidRecordsError(ValueError):
    """Records failed presence checks; nothing was written."""

    def __init__(self, message: str, indexes: Sequence[int]) -> None:
        super().__init__(message)
        self.indexes = list(indexes)


def _missing(record: Mapping[str, Any], key: str) -> bool:
    value = record.get(key)
    return value is None or (isinstance(value, str) and not value.strip())


def validate_product_records(records: Sequence[Mapping[str, Any]]) -> None:
    """Reject the batch up front if any record lacks company_id or title."""
    bad = [i for i, r in enumerate(records) if _missing(r, "company_id") or _missing(r, "title")]
    if bad:
        raise InvalidRecordsError(
            f"company_id and title are required (invalid records at indexes {bad})", bad
        )


def validate_company_records(records: Sequence[Mapping[str, Any]]) -> None:
    bad = [i for i, r in enumerate(records) if _missing(r, "name")]
    if bad:
        raise InvalidRecordsError(f"Company name is required (invalid records at indexes {bad})", bad)


def ingest_products(db: Database, records: Sequence[Mapping[str, Any]]) -> BatchResult:
    """Insert products in one transaction, skipping already-known Shopify ids.

    Raises InvalidRecordsError before touching the store when a record is
    missing company_id or title. Any store error rolls back the batch.
    """
    validate_product_records(records)

    result = BatchResult()
    with db.begin() as conn:
        for record in records:
            row = insert_product_if_absent(conn, record)
            if row is None:
                result.outcomes.append(Skipped(record=dict(record), reason=DUPLICATE_SHOPIFY_ID))
            else:
                result.outcomes.append(Accepted(row=row))

    logger.info(
        f"ingest_products: received={len(records)} added={result.added_count} "
        f"skipped={result.skipped_count}"
    )
    return result


def ingest_companies(db: Database, records: Sequence[Mapping[str, Any]]) -> List[Dict[str, Any]]:
    """Insert all companies or none."""
    validate_company_records(records)

    with db.begin() as conn:
        companies = [insert_company(conn, record) for record in records]

    logger.info(f"ingest_companies: added={len(companies)}")
    return companies


def save_monitoring_config(
    db: Database,
    company_id: int,
    days_back: Optional[int] = None,
    max_products: Optional[int] = None,
    check_frequency: Optional[str] = None,
    is_enabled: Optional[bool] = None,
) -> Dict[str, Any]:
    """Insert or overwrite the company's config; omitted fields take defaults."""
    with db.begin() as conn:
        config = upsert_monitoring_config(
            conn,
            company_id=company_id,
            days_back=DEFAULT_DAYS_BACK if days_back is None else days_back,
            max_products=DEFAULT_MAX_PRODUCTS if max_products is None else max_products,
            check_frequency=check_frequency or DEFAULT_CHECK_FREQUENCY,
            is_enabled=DEFAULT_IS_ENABLED if is_enabled is None else is_enabled,
        )
    logger.info(f"save_monitoring_config: company_id={company_id} config_id={config['id']}")
    return config
