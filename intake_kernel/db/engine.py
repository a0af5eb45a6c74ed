"""
Module: intake_kernel.db.engine
Responsibility: SQLAlchemy engine initialization, session factory management,
    and transactional scope utilities.  Single point of database connection
    configuration for the whole system.
Architecture position: Kernel > DB.  May import from db/base.py.  MUST NOT
    import from services/, domain/, or outer layers (create_tables imports
    the models package lazily so Base.metadata is populated).

Invariants enforced:
    - PostgreSQL sessions run at READ COMMITTED with explicit row-level
      locking (SELECT ... FOR UPDATE) on the client row per transition.
    - Connection pooling via QueuePool with pre-ping for PostgreSQL.
    - SQLite URLs are accepted for local runs and tests; row locks are a
      no-op there and a single writer is assumed.

Failure modes:
    - RuntimeError if get_engine/get_session/get_session_factory called before
      init_engine_from_url().
    - Connection pool exhaustion if pool_size + max_overflow is exceeded.

Audit relevance:
    session_scope() gives atomic commit-or-rollback semantics; the status
    write, event log append, and task effects of a transition share it.
"""

import atexit
from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool

from intake_kernel.logging_config import configure_logging, get_logger

logger = get_logger("db.engine")

# Module-level engine and session factory
_engine: Engine | None = None
_SessionFactory: sessionmaker[Session] | None = None


def init_engine_from_url(
    database_url: str,
    echo: bool = False,
    pool_size: int = 20,
    max_overflow: int = 10,
    pool_pre_ping: bool = True,
    pool_timeout: int = 30,
    pool_recycle: int = 1800,
) -> Engine:
    """
    Initialize the SQLAlchemy engine from a database URL.

    Preconditions: database_url is a valid SQLAlchemy URL.  Calling twice
        without reset_engine() overwrites the first engine.
    Postconditions: Module-level _engine and _SessionFactory are initialized.

    Args:
        database_url: Connection URL (postgresql://... or sqlite:///...).
        echo: If True, log all SQL statements.
        pool_size: PostgreSQL only -- connections kept in the pool.
        max_overflow: PostgreSQL only -- connections beyond pool_size.
        pool_pre_ping: PostgreSQL only -- test connections before use.
        pool_timeout: PostgreSQL only -- seconds to wait for a connection.
        pool_recycle: PostgreSQL only -- seconds before a connection is recycled.

    Returns:
        SQLAlchemy Engine instance.
    """
    global _engine, _SessionFactory

    dialect = make_url(database_url).get_backend_name()

    if dialect == "sqlite":
        _engine = create_engine(database_url, echo=echo)
        event.listen(_engine, "connect", _enable_sqlite_foreign_keys)
    else:
        _engine = create_engine(
            database_url,
            echo=echo,
            poolclass=QueuePool,
            pool_size=pool_size,
            max_overflow=max_overflow,
            pool_pre_ping=pool_pre_ping,
            pool_timeout=pool_timeout,
            pool_recycle=pool_recycle,
            isolation_level="READ COMMITTED",
        )

    _SessionFactory = sessionmaker(bind=_engine, expire_on_commit=False)

    configure_logging()
    logger.info(
        "engine_initialized",
        extra={
            "dialect": dialect,
            "pool_size": pool_size if dialect != "sqlite" else None,
            "echo": echo,
        },
    )

    return _engine


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def get_engine() -> Engine:
    """
    Get the current engine instance.

    Raises:
        RuntimeError: If engine has not been initialized.
    """
    if _engine is None:
        raise RuntimeError("Engine not initialized. Call init_engine_from_url() first.")
    return _engine


def is_initialized() -> bool:
    """True once init_engine_from_url() has run and reset_engine() has not."""
    return _engine is not None


def get_session() -> Session:
    """
    Get a new session instance.

    Raises:
        RuntimeError: If engine has not been initialized.
    """
    if _SessionFactory is None:
        raise RuntimeError("Engine not initialized. Call init_engine_from_url() first.")
    return _SessionFactory()


def get_session_factory() -> sessionmaker[Session]:
    """
    Get the session factory for creating sessions.

    The detached phase (notifications, commission) opens its own sessions
    from this factory so its failures cannot touch a committed transition.

    Raises:
        RuntimeError: If engine has not been initialized.
    """
    if _SessionFactory is None:
        raise RuntimeError("Engine not initialized. Call init_engine_from_url() first.")
    return _SessionFactory


@contextmanager
def session_scope(
    factory: sessionmaker[Session] | None = None,
) -> Generator[Session, None, None]:
    """
    Provide a transactional scope around a series of operations.

    Postconditions: On normal exit, session is committed and closed.
        On exception, session is rolled back and closed.  The exception
        is re-raised to the caller.

    Args:
        factory: Session factory to use.  Defaults to the module factory.

    Usage:
        with session_scope() as session:
            session.add(entity)
            # Commits on successful exit, rolls back on exception
    """
    session = factory() if factory is not None else get_session()
    logger.debug("transaction_started")
    try:
        yield session
        session.commit()
        logger.debug("transaction_committed")
    except Exception:
        session.rollback()
        logger.debug("transaction_rolled_back")
        raise
    finally:
        session.close()


def create_tables() -> None:
    """
    Create all tables defined in the models.

    Preconditions: Engine must be initialized via init_engine_from_url().
    Postconditions: All tables exist in the database.
    """
    from intake_kernel.db.base import Base
    import intake_kernel.models  # noqa: F401

    Base.metadata.create_all(get_engine())


def reset_engine() -> None:
    """
    Reset the engine and session factory.

    Useful for test cleanup.
    """
    global _engine, _SessionFactory

    if _engine is not None:
        _engine.dispose()
        _engine = None

    _SessionFactory = None


def _atexit_dispose():
    """Dispose the engine on process exit to release all pooled connections."""
    if _engine is not None:
        _engine.dispose()


atexit.register(_atexit_dispose)

