# backend/masterbook/repositories/__init__.py
"""
Storage adapters, selected at startup by settings.storage_backend.

sql  → SqlBookingRepository (SQLAlchemy, partial unique index on active slots)
file → FileBookingRepository (single JSON document, atomic replace)
"""

import logging
from pathlib import Path

from ..config import Settings
from .base import Account, BookingRepository, ServiceRecord
from .file_store import FileBookingRepository
from .sql import SqlBookingRepository

logger = logging.getLogger(__name__)


def build_repository(settings: Settings) -> BookingRepository:
    """Create the configured storage adapter (and the SQL schema if missing)."""
    if settings.storage_backend == "file":
        logger.info(f"Storage: JSON file {settings.resolved_data_file}")
        return FileBookingRepository(settings.resolved_data_file)

    from ..database import create_db_engine, create_session_factory
    from ..models import Base

    url = settings.resolved_database_url
    if url.startswith("sqlite:///"):
        Path(url.replace("sqlite:///", "", 1)).parent.mkdir(parents=True, exist_ok=True)

    engine = create_db_engine(url)
    Base.metadata.create_all(engine)
    logger.info(f"Storage: SQL {engine.url.render_as_string(hide_password=True)}")
    return SqlBookingRepository(create_session_factory(engine))


__all__ = [
    "Account",
    "BookingRepository",
    "FileBookingRepository",
    "ServiceRecord",
    "SqlBookingRepository",
    "build_repository",
]
