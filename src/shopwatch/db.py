"""Connection pool handle and store error classification.

`Database` wraps a SQLAlchemy Engine with a bounded QueuePool. It is created
and disposed by the application lifespan and handed to request handlers via
the `get_database` dependency; nothing in the package holds a module-level
engine.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

from fastapi import Request
from psycopg2 import errorcodes
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import DBAPIError

from shopwatch import settings

logger = logging.getLogger(__name__)


class Database:
    """Process-scoped owner of the connection pool."""

    def __init__(
        self,
        url: str,
        *,
        pool_size: int = 20,
        max_overflow: int = 0,
        pool_timeout: float = 30,
        pool_recycle: int = 1800,
        connect_timeout: int = 10,
        ssl: bool = False,
    ) -> None:
        self.url = url
        self.pool_size = pool_size
        self.max_overflow = max_overflow
        self.pool_timeout = pool_timeout
        self.pool_recycle = pool_recycle
        self.connect_timeout = connect_timeout
        self.ssl = ssl
        self._engine: Optional[Engine] = None

    @classmethod
    def from_settings(cls) -> "Database":
        return cls(
            settings.DATABASE_URL,
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
            pool_timeout=settings.DB_POOL_TIMEOUT,
            pool_recycle=settings.DB_POOL_RECYCLE,
            connect_timeout=settings.DB_CONNECT_TIMEOUT,
            ssl=settings.DB_SSL,
        )

    def _connect_args(self) -> Dict[str, Any]:
        connect_args: Dict[str, Any] = {"connect_timeout": self.connect_timeout}
        if self.ssl:
            connect_args["sslmode"] = "require"
        return connect_args

    def init(self) -> Engine:
        """Create the engine. Calling it twice returns the existing engine."""
        if self._engine is None:
            self._engine = create_engine(
                self.url,
                pool_size=self.pool_size,
                max_overflow=self.max_overflow,
                pool_timeout=self.pool_timeout,
                pool_recycle=self.pool_recycle,
                pool_pre_ping=True,
                connect_args=self._connect_args(),
            )
            logger.info(
                f"Database pool initialised (size={self.pool_size}, overflow={self.max_overflow}, "
                f"timeout={self.pool_timeout}s, recycle={self.pool_recycle}s)"
            )
        return self._engine

    def dispose(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
            logger.info("Database pool disposed")

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            raise RuntimeError("Database is not initialised; call init() first")
        return self._engine

    @contextmanager
    def connect(self) -> Iterator[Connection]:
        """Non-transactional scope for reads."""
        with self.engine.connect() as conn:
            yield conn

    @contextmanager
    def begin(self) -> Iterator[Connection]:
        """Transactional scope.

        Commits when the block exits normally, rolls back when it raises, and
        returns the connection to the pool in both cases.
        """
        with self.engine.begin() as conn:
            yield conn

    def ping(self) -> None:
        with self.connect() as conn:
            conn.execute(text("SELECT 1"))


def get_database(request: Request) -> Database:
    """FastAPI dependency returning the pool handle owned by the app."""
    db = getattr(request.app.state, "db", None)
    if db is None:
        raise RuntimeError("Database handle is not attached to the application")
    return db


def _sqlstate(exc: BaseException) -> Optional[str]:
    orig = exc.orig if isinstance(exc, DBAPIError) else exc
    return getattr(orig, "pgcode", None)


def _diag(exc: BaseException, attr: str) -> Optional[str]:
    orig = exc.orig if isinstance(exc, DBAPIError) else exc
    diag = getattr(orig, "diag", None)
    return getattr(diag, attr, None)


def is_unique_violation(exc: BaseException, table: Optional[str] = None) -> bool:
    """True if the store rejected a statement for breaking a unique constraint.

    With `table`, the violation must also be reported on that table. The
    constraint name is not checked: existing databases may carry the same
    constraint under another name.
    """
    if _sqlstate(exc) != errorcodes.UNIQUE_VIOLATION:
        return False
    if table is None:
        return True
    return _diag(exc, "table_name") == table
