"""Database setup and session management."""

import logging
from functools import lru_cache

from sqlalchemy import create_engine, text
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from config import settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


@lru_cache
def get_engine():
    """Get or create the database engine (cached)."""
    connect_args = {}
    database_url = settings.DATABASE_URL

    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False

    return create_engine(
        database_url,
        connect_args=connect_args,
        echo=False,
    )


def get_session_local():
    """Get a sessionmaker bound to the engine."""
    return sessionmaker(autocommit=False, autoflush=False, bind=get_engine())


def init_db(engine=None) -> None:
    """Create any missing tables from the ORM metadata."""
    # Importing the models registers their tables on Base.metadata
    import models  # noqa: F401

    engine = engine or get_engine()
    Base.metadata.create_all(bind=engine)
    logger.info("Database schema ready (%s)", engine.url.get_backend_name())


def acquire_write_lock(db: Session) -> None:
    """Take the database write lock for a read-modify-write cycle.

    On SQLite this issues ``BEGIN IMMEDIATE`` so no other writer can
    commit between our reads and our writes. The check is made on the
    driver connection, not the session: the session counts earlier SELECTs
    as an open transaction, but pysqlite only begins one on the first
    write, and until then no lock is held. Other dialects rely on the row
    locks taken with ``SELECT ... FOR UPDATE``.
    """
    if db.get_bind().dialect.name != "sqlite":
        return
    dbapi_connection = db.connection().connection.dbapi_connection
    if dbapi_connection.in_transaction:
        return
    db.execute(text("BEGIN IMMEDIATE"))


def get_db():
    """Dependency that provides a database session.

    Transaction conventions:
    - Default: services ``flush()``, API layer ``commit()``
    - Exceptions that commit internally:
      - Consumption mutations, batch allocation and reconciliation run
        through ``services.ledger_transaction.run_in_transaction``, which
        takes the write lock, commits, and retries lock contention
    """
    SessionLocal = get_session_local()
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
