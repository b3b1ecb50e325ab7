"""Shared fixtures: an in-memory stand-in for the pool handle.

FakeDatabase mirrors the transaction contract of `shopwatch.db.Database`:
`begin()` commits rows written on its connection when the block exits
normally, discards them when it raises, and always checks the connection
back in.
"""

from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

NOW = datetime(2024, 3, 10, 12, 0, tzinfo=timezone.utc)


class FakePgError(Exception):
    """Carries the attributes psycopg2 errors expose."""

    class _Diag:
        def __init__(self, constraint_name: Optional[str], table_name: Optional[str]) -> None:
            self.constraint_name = constraint_name
            self.table_name = table_name

    def __init__(
        self, pgcode: str, constraint_name: Optional[str] = None, table_name: Optional[str] = None
    ) -> None:
        super().__init__(f"pgcode {pgcode}")
        self.pgcode = pgcode
        self.diag = self._Diag(constraint_name, table_name)


def integrity_error(
    pgcode: str, constraint_name: Optional[str] = None, table_name: Optional[str] = None
) -> IntegrityError:
    return IntegrityError("INSERT ...", {}, FakePgError(pgcode, constraint_name, table_name))


class FakeConnection:
    def __init__(self, db: "FakeDatabase") -> None:
        self.db = db
        self.rows: List[Dict[str, Any]] = []
        self.executed: List[str] = []

    def execute(self, statement, params=None):
        sql = str(statement)
        if self.db.fail_on and self.db.fail_on in sql:
            raise OperationalError(sql, params or {}, Exception("server closed the connection"))
        self.executed.append(sql)
        return None


class FakeDatabase:
    def __init__(self) -> None:
        self.committed: List[Dict[str, Any]] = []
        self.executed: List[str] = []
        self.transactions = 0
        self.commits = 0
        self.rollbacks = 0
        self.checked_out = 0
        self.fail_on: Optional[str] = None
        self.ping_error: Optional[Exception] = None
        self._next_id = 1

    def next_id(self) -> int:
        value = self._next_id
        self._next_id += 1
        return value

    @contextmanager
    def begin(self):
        conn = FakeConnection(self)
        self.transactions += 1
        self.checked_out += 1
        try:
            yield conn
        except Exception:
            self.rollbacks += 1
            raise
        else:
            self.commits += 1
            self.committed.extend(conn.rows)
            self.executed.extend(conn.executed)
        finally:
            self.checked_out -= 1

    @contextmanager
    def connect(self):
        conn = FakeConnection(self)
        self.checked_out += 1
        try:
            yield conn
        finally:
            self.checked_out -= 1

    def ping(self) -> None:
        if self.ping_error is not None:
            raise self.ping_error


@pytest.fixture
def fake_db() -> FakeDatabase:
    return FakeDatabase()


@pytest.fixture
def product_store(fake_db, monkeypatch):
    """Route ingestion's product insert to the fake store.

    Known (company_id, shopify_product_id) pairs are skipped like
    ON CONFLICT DO NOTHING; company_id 999 does not exist and fails with a
    foreign key violation.
    """
    from shopwatch.services import ingestion

    def fake_insert_product_if_absent(conn, record):
        if record["company_id"] == 999:
            raise integrity_error("23503")
        shopify_id = record.get("shopify_product_id")
        if shopify_id is not None:
            for row in fake_db.committed + conn.rows:
                if (row["company_id"], row["shopify_product_id"]) == (record["company_id"], shopify_id):
                    return None
        row = {
            "id": fake_db.next_id(),
            **record,
            "first_seen": NOW,
            "last_seen": NOW,
            "is_new_product": record.get("is_new_product") is not False,
        }
        conn.rows.append(row)
        return row

    monkeypatch.setattr(ingestion, "insert_product_if_absent", fake_insert_product_if_absent)
    return fake_db


@pytest.fixture
def company_store(fake_db, monkeypatch):
    """Route ingestion's company insert to the fake store; names are unique."""
    from shopwatch.services import ingestion

    def fake_insert_company(conn, record):
        names = {row["name"] for row in fake_db.committed + conn.rows}
        if record["name"] in names:
            raise integrity_error("23505", "uq_companies_name", "companies")
        row = {
            "id": fake_db.next_id(),
            **record,
            "is_active": True,
            "created_at": NOW,
            "updated_at": NOW,
        }
        conn.rows.append(row)
        return row

    monkeypatch.setattr(ingestion, "insert_company", fake_insert_company)
    return fake_db
