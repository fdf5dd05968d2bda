"""
Engine and session management for the ledger database.

Two backends are supported:

* **PostgreSQL** (``postgresql+psycopg2://``) at READ COMMITTED.  The entry
  number counter is protected by an explicit ``SELECT ... FOR UPDATE``.
* **SQLite** (``sqlite://`` / ``sqlite:///path``) for tests and embedded
  use.  pysqlite's implicit transaction handling is switched off and every
  transaction starts with ``BEGIN IMMEDIATE``, so writers queue on the
  database lock and the counter read-increment cannot interleave.

``create_ledger_engine`` builds a standalone engine.  ``init_engine_from_url``
installs a process-wide engine and session factory used by ``get_session``
and ``session_scope``.  Services never commit; ``session_scope`` (or the
caller's own ``session.begin()``) owns the transaction.
"""

import atexit
from contextlib import contextmanager
from typing import Any, Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

from ledger_kernel.logging_config import configure_logging, get_logger

logger = get_logger("db.engine")

# Seconds a SQLite writer waits for the database lock
SQLITE_BUSY_TIMEOUT = 30

POSTGRES_POOL_DEFAULTS: dict[str, Any] = {
    "pool_size": 20,
    "max_overflow": 10,
    "pool_pre_ping": True,
    "pool_timeout": 30,
    "pool_recycle": 1800,
}

_engine: Engine | None = None
_session_factory: sessionmaker[Session] | None = None


def _sqlite_engine(url, echo: bool) -> Engine:
    in_memory = url.database in (None, "", ":memory:")
    engine = create_engine(
        url,
        echo=echo,
        connect_args={"check_same_thread": False, "timeout": SQLITE_BUSY_TIMEOUT},
        # One shared connection keeps an in-memory database alive
        poolclass=StaticPool if in_memory else QueuePool,
    )

    @event.listens_for(engine, "connect")
    def _disable_pysqlite_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    return engine


def create_ledger_engine(database_url: str, echo: bool = False, **pool_options: Any) -> Engine:
    """
    Build an engine for ``database_url`` without installing it globally.

    ``pool_options`` (pool_size, max_overflow, pool_pre_ping, pool_timeout,
    pool_recycle) override ``POSTGRES_POOL_DEFAULTS`` and are ignored for
    SQLite.
    """
    url = make_url(database_url)
    if url.get_backend_name() == "sqlite":
        return _sqlite_engine(url, echo)

    options = {**POSTGRES_POOL_DEFAULTS, **pool_options}
    return create_engine(
        url,
        echo=echo,
        poolclass=QueuePool,
        isolation_level="READ COMMITTED",
        **options,
    )


def init_engine_from_url(database_url: str, echo: bool = False, **pool_options: Any) -> Engine:
    """
    Install the process-wide engine and session factory.

    A previous engine is replaced but not disposed; call ``reset_engine``
    first for a clean swap.
    """
    global _engine, _session_factory

    _engine = create_ledger_engine(database_url, echo=echo, **pool_options)
    _session_factory = sessionmaker(bind=_engine, expire_on_commit=False)

    configure_logging()
    logger.info(
        "engine_initialized",
        extra={"dialect": _engine.dialect.name, "echo": echo, **pool_options},
    )
    return _engine


def _require_factory() -> sessionmaker[Session]:
    if _session_factory is None:
        raise RuntimeError("Engine not initialized. Call init_engine_from_url() first.")
    return _session_factory


def get_engine() -> Engine:
    if _engine is None:
        raise RuntimeError("Engine not initialized. Call init_engine_from_url() first.")
    return _engine


def get_session() -> Session:
    return _require_factory()()


def get_session_factory() -> sessionmaker[Session]:
    """The session factory; worker threads each open their own session from it."""
    return _require_factory()


@contextmanager
def session_scope() -> Generator[Session, None, None]:
    """
    One transaction around a block of service calls.

    Commits when the block exits normally.  Any exception rolls the whole
    unit back, is logged as ``transaction_rolled_back`` and re-raised.

        with session_scope() as session:
            JournalEntryService(session).create_entry(company_id, data, actor)
    """
    session = get_session()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        logger.warning("transaction_rolled_back", exc_info=True)
        raise
    finally:
        session.close()


def create_tables(engine: Engine | None = None) -> None:
    from ledger_kernel.db.base import Base
    import ledger_kernel.models  # noqa: F401  (registers the mapped tables)

    Base.metadata.create_all(engine or get_engine())


def drop_tables(engine: Engine | None = None) -> None:
    from ledger_kernel.db.base import Base
    import ledger_kernel.models  # noqa: F401

    Base.metadata.drop_all(engine or get_engine())


def reset_engine() -> None:
    """Dispose the process-wide engine and forget the session factory."""
    global _engine, _session_factory

    if _engine is not None:
        _engine.dispose()
    _engine = None
    _session_factory = None


atexit.register(reset_engine)
