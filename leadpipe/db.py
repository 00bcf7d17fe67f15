"""
leadpipe.db

Database connectivity and the transaction boundary.

Contracts this module provides:
- normalize_database_url(): scheme/driver cleanup for DATABASE_URL variants
- make_engine(): one SQLAlchemy Engine per process, built by the orchestrator
- Store: owns the engine; `transaction()` is the only way ledger / queue
  mutations touch the database, so atomicity is visible at the call site
- init_schema(): create all tables (idempotent)

Nothing here is created at import time.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Connection, Engine

from .schema import Base, utcnow  # noqa: F401

logger = logging.getLogger(__name__)


def normalize_database_url(raw: str) -> str:
    """
    Normalize DATABASE_URL variants to something SQLAlchemy can reliably use.

    Normalizations:
    - postgres://  -> postgresql://
    - postgresql+psycopg:// -> postgresql+psycopg2://
    """
    url = (raw or "").strip()

    if url.startswith("postgres://"):
        url = "postgresql://" + url[len("postgres://") :]

    if url.startswith("postgresql+psycopg://"):
        url = "postgresql+psycopg2://" + url[len("postgresql+psycopg://") :]

    return url


def make_engine(database_url: str, **kwargs) -> Engine:
    url = normalize_database_url(database_url)
    if not url:
        raise RuntimeError("DATABASE_URL is empty.")

    if url.startswith("sqlite"):
        # Worker threads share the engine; give writers time to wait on the file lock.
        connect_args = kwargs.pop("connect_args", {})
        connect_args.setdefault("check_same_thread", False)
        connect_args.setdefault("timeout", 30)
        engine = create_engine(url, connect_args=connect_args, future=True, **kwargs)
        _serialize_sqlite_transactions(engine)
        return engine

    return create_engine(url, pool_pre_ping=True, future=True, **kwargs)


def _serialize_sqlite_transactions(engine: Engine) -> None:
    # pysqlite defers BEGIN until the first write, so a read-then-write block is
    # not isolated. Take the write lock up front instead.
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_conn, _record):
        dbapi_conn.isolation_level = None

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def init_schema(engine: Engine) -> None:
    """Create every table and index if missing."""
    Base.metadata.create_all(engine)
    logger.info("Schema ensured on %s", engine.url.render_as_string(hide_password=True))


class Store:
    """
    Thin owner of the Engine.

    Usage:
        with store.transaction() as conn:
            conn.execute(...)
            conn.execute(...)
        # committed here, or rolled back if the block raised
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    @property
    def dialect(self) -> str:
        return self.engine.dialect.name

    @contextmanager
    def transaction(self) -> Iterator[Connection]:
        conn = self.engine.connect()
        trans = conn.begin()
        try:
            yield conn
            trans.commit()
        except Exception:
            trans.rollback()
            raise
        finally:
            conn.close()

    @contextmanager
    def connect(self) -> Iterator[Connection]:
        """Read-only convenience; anything written here is rolled back on close."""
        with self.engine.connect() as conn:
            yield conn
