"""
Database engine, sessions and schema for the SQL partition store.

All partitions share one table, partition_items, keyed by
(partition, item_id). The version column holds the opaque token that
conditional updates compare against.
"""
from typing import Optional
from contextlib import contextmanager
import logging
import os

from sqlalchemy import create_engine, MetaData, Table, Column, String, DateTime, Text, Index, text
from sqlalchemy.engine import Engine
from sqlalchemy.pool import QueuePool, StaticPool
from sqlalchemy.orm import sessionmaker
from sqlalchemy.sql import func

from payment_storage.core.config import settings

logger = logging.getLogger("payment_storage")

metadata = MetaData()

partition_items = Table(
    'partition_items',
    metadata,
    Column('partition', String(100), primary_key=True),
    Column('item_id', String(255), primary_key=True),
    Column('version', String(32), nullable=False),
    Column('data', Text, nullable=False),  # JSON payload
    Column('created_at', DateTime(timezone=True), server_default=func.now(), nullable=False),
    Column('updated_at', DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False),
    Index('idx_partition_items_partition', 'partition'),
)

# Pool sizing for server databases (ignored for sqlite)
POOL_SIZE = 10
MAX_OVERFLOW = 20
POOL_RECYCLE_SECONDS = 3600

_engine: Optional[Engine] = None
_SessionLocal = None


def get_database_url() -> Optional[str]:
    """TEST_DATABASE_URL wins over DATABASE_URL; None means no SQL store."""
    return os.getenv("TEST_DATABASE_URL") or os.getenv("DATABASE_URL") or settings.DATABASE_URL


def _build_engine(url: str) -> Engine:
    if url.startswith("sqlite"):
        # One shared connection keeps sqlite:// (in-memory) alive across sessions
        return create_engine(url, connect_args={"check_same_thread": False}, poolclass=StaticPool)
    return create_engine(
        url,
        poolclass=QueuePool,
        pool_size=POOL_SIZE,
        max_overflow=MAX_OVERFLOW,
        pool_recycle=POOL_RECYCLE_SECONDS,
        pool_pre_ping=True,
    )


def init_engine(database_url: Optional[str] = None) -> Engine:
    global _engine, _SessionLocal

    url = database_url or get_database_url()
    if not url:
        raise ValueError("DATABASE_URL is not configured. Set DATABASE_URL in environment or .env file.")

    _engine = _build_engine(url)
    _SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=_engine)
    return _engine


def get_engine() -> Engine:
    if _engine is None:
        init_engine()
    return _engine


def dispose_engine() -> None:
    """Drop the cached engine so the next call re-reads the database URL."""
    global _engine, _SessionLocal
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _SessionLocal = None


@contextmanager
def get_db_session():
    """
    Transactional session scope.

    Commits when the block exits cleanly, rolls back and re-raises otherwise.
    """
    if _SessionLocal is None:
        init_engine()
    session = _SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def create_all_tables() -> None:
    """Create missing tables (idempotent)."""
    metadata.create_all(bind=get_engine())


def drop_all_tables() -> None:
    # Destructive: tests and local development only
    metadata.drop_all(bind=get_engine())


def reset_database() -> None:
    drop_all_tables()
    create_all_tables()


def check_connection() -> bool:
    """Return True when a trivial query succeeds against the configured database."""
    try:
        with get_engine().connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.warning(f"Database connection check failed: {e}")
        return False
