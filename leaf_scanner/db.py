"""
Database connection and session management using SQLAlchemy.
"""
import logging
from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

# Created by init_db(); both stay None while no database is configured
engine = None
SessionLocal = None
Base = declarative_base()

# PostgreSQL SQLSTATE for "undefined column"
UNDEFINED_COLUMN = "42703"


def _normalize_url(database_url: str) -> str:
    # Hosted Postgres providers still hand out postgres:// URLs
    if database_url.startswith("postgres://"):
        return database_url.replace("postgres://", "postgresql://", 1)
    return database_url


def init_db(database_url: Optional[str]) -> bool:
    """Initialize database connection. Called on startup."""
    global engine, SessionLocal

    if not database_url:
        logger.warning("DATABASE_URL not set. Scan history disabled.")
        engine = None
        SessionLocal = None
        return False

    database_url = _normalize_url(database_url)
    kwargs = {"pool_pre_ping": True}
    if database_url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if ":memory:" in database_url or database_url == "sqlite://":
            kwargs["poolclass"] = StaticPool

    try:
        engine = create_engine(database_url, **kwargs)
        SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

        # Import models so their tables are registered on Base.metadata
        from leaf_scanner.models import scan_record  # noqa: F401

        Base.metadata.create_all(bind=engine)
        logger.info("Database connected: %s", engine.url.render_as_string(hide_password=True))
        return True
    except SQLAlchemyError as e:
        logger.error(f"Database connection failed: {e}", exc_info=True)
        engine = None
        SessionLocal = None
        return False


def get_db():
    """Dependency to get database session."""
    if SessionLocal is None:
        yield None
        return
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def is_db_available() -> bool:
    """Check if database is available."""
    return engine is not None and SessionLocal is not None


def is_undefined_column_error(error: SQLAlchemyError) -> bool:
    """True when the store rejected a write because a column does not exist."""
    orig = getattr(error, "orig", None)
    code = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if code == UNDEFINED_COLUMN:
        return True
    message = str(orig if orig is not None else error).lower()
    return "no such column" in message or "has no column named" in message
