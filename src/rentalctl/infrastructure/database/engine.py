"""Database engine setup for SQLite with WAL mode.

Writers open ``BEGIN IMMEDIATE`` transactions (take the database write lock
up front) so a conflict check and the write that follows it cannot
interleave with another writer, even across processes.  Readers use plain
deferred transactions.

SQLAlchemy Core (not ORM) is used: repositories map rows to frozen domain
snapshots themselves, so there is no identity map to keep in sync.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Connection, Engine

from rentalctl.infrastructure.database.schema import metadata

DB_FILENAME = "rentalctl.db"
BEGIN_MODE_OPTION = "sqlite_begin_mode"
BUSY_TIMEOUT_SECONDS = 30


def create_db_engine(db_path: Path) -> Engine:
    """Create a SQLite engine with WAL mode, foreign keys, and explicit BEGIN."""
    engine = create_engine(
        f"sqlite:///{db_path}",
        echo=False,
        connect_args={"check_same_thread": False, "timeout": BUSY_TIMEOUT_SECONDS},
    )

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn: Any, _: Any) -> None:
        # Hand transaction control to the "begin" listener below.
        dbapi_conn.isolation_level = None
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _begin(conn: Connection) -> None:
        mode = conn.get_execution_options().get(BEGIN_MODE_OPTION, "DEFERRED")
        conn.exec_driver_sql(f"BEGIN {mode}")

    return engine


def init_database(data_dir: Path) -> Engine:
    """Initialize the rental database at ``{data_dir}/rentalctl.db``.

    Creates *data_dir* and all tables from :data:`schema.metadata`.
    Idempotent — safe to call on an existing database.
    """
    data_dir.mkdir(parents=True, exist_ok=True)
    engine = create_db_engine(data_dir / DB_FILENAME)
    metadata.create_all(engine)
    return engine
