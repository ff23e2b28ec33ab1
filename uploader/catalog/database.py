"""
Database engine management.

Provides the engine factory and a connectivity check. Upload metadata is
accessed through SQLAlchemy Core, one transaction per store operation.
"""

from typing import Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import QueuePool

from uploader.config.settings import Settings, get_settings


def create_db_engine(settings: Optional[Settings] = None) -> Engine:
    """
    Create an engine from settings.

    SQLite keeps SQLAlchemy's default pool; server databases get a
    QueuePool sized from settings with pre-ping and hourly recycling.
    """
    settings = settings or get_settings()
    url = make_url(settings.database_url)

    if url.get_backend_name() == "sqlite":
        return create_engine(url, echo=settings.debug, future=True)

    return create_engine(
        url,
        poolclass=QueuePool,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_pre_ping=True,
        pool_recycle=3600,
        echo=settings.debug,
        future=True,
    )


def check_database_connection(engine: Engine) -> bool:
    """
    Check if database connection is healthy.

    Returns:
        True if connection is successful, False otherwise
    """
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError:
        return False
