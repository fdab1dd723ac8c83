"""
Base database model and session management
"""
import os
from sqlalchemy import create_engine, inspect, text
from sqlalchemy.pool import NullPool, StaticPool
from sqlalchemy.orm import declarative_base, sessionmaker

from marketing_hub.config import get_settings
from marketing_hub.utils.logger import log

settings = get_settings()

# Resolve relative SQLite paths to absolute so cwd changes can't break it
_db_url = settings.database_url
if _db_url.startswith("sqlite:///") and not _db_url.startswith("sqlite:////") and ":memory:" not in _db_url:
    rel_path = _db_url[len("sqlite:///"):]
    _db_url = "sqlite:///" + os.path.abspath(rel_path)

# Create database engine
if ":memory:" in _db_url:
    # In-memory SQLite must share one connection or every session sees an empty DB
    engine = create_engine(
        _db_url,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
elif _db_url.startswith("sqlite"):
    engine = create_engine(
        _db_url,
        connect_args={"check_same_thread": False, "timeout": 60},
        poolclass=NullPool,
        pool_pre_ping=True
    )
else:
    engine = create_engine(
        _db_url,
        pool_pre_ping=True,
        pool_size=3,
        max_overflow=5,
        pool_recycle=300,
    )

# Create session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base class for all models
Base = declarative_base()


def get_db():
    """Get database session"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def _migrate_missing_columns():
    """Add columns defined in models but missing from existing DB tables.

    create_all() only creates missing *tables*; it cannot add new columns
    to tables that already exist.
    """
    inspector = inspect(engine)
    with engine.connect() as conn:
        for table_name, table in Base.metadata.tables.items():
            if not inspector.has_table(table_name):
                continue  # create_all will handle it
            existing = {c["name"] for c in inspector.get_columns(table_name)}
            for col in table.columns:
                if col.name not in existing:
                    col_type = col.type.compile(dialect=engine.dialect)
                    sql = f'ALTER TABLE {table_name} ADD COLUMN {col.name} {col_type}'
                    log.info(f"Auto-migrating: {sql}")
                    conn.execute(text(sql))
        conn.commit()


def init_db():
    """Initialize database tables and auto-migrate new columns."""
    # Register every model on Base.metadata before create_all
    import marketing_hub.models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    _migrate_missing_columns()
