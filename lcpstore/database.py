"""Engine and store wiring.

Provides the engine factory and a lazy container that opens the content
index and the license store for callers that configure themselves from
settings. The stores never read settings on their own.
"""

import logging
from typing import Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine

from lcpstore.config import settings
from lcpstore.dialect import Dialect
from lcpstore.index import ContentIndex
from lcpstore.license import LicenseStore

logger = logging.getLogger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_database_engine(database_url: Optional[str] = None, **kwargs) -> Engine:
    """Create an engine for ``database_url`` (defaults to settings.DATABASE_URL).

    SQLite connections get foreign key enforcement switched on, so the
    license -> content reference is checked like on the other backends.

    Args:
        database_url: SQLAlchemy database URL
        **kwargs: Extra arguments for ``create_engine``

    Returns:
        SQLAlchemy engine; disposing it is the caller's job
    """
    url = database_url or settings.DATABASE_URL
    kwargs.setdefault("echo", settings.DATABASE_ECHO)
    engine = create_engine(url, **kwargs)
    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    return engine


class StoreContainer:
    """Container for both stores sharing one engine."""

    def __init__(self, engine: Engine, dialect: Dialect):
        """Initialize store container.

        Args:
            engine: SQLAlchemy engine
            dialect: Backend flavour for both stores
        """
        self.engine = engine
        self.dialect = dialect
        self._index = None
        self._licenses = None

    @property
    def index(self) -> ContentIndex:
        """Get the content index, creating its table on first use."""
        if self._index is None:
            self._index = ContentIndex(self.engine, self.dialect)
        return self._index

    @property
    def licenses(self) -> LicenseStore:
        """Get the license store, creating its table on first use.

        The content table is bootstrapped first since licenses reference it.
        """
        if self._licenses is None:
            self.index
            self._licenses = LicenseStore(self.engine, self.dialect)
        return self._licenses

    def dispose(self) -> None:
        """Close every pooled connection of the underlying engine."""
        self.engine.dispose()


def get_stores(database_url: Optional[str] = None) -> StoreContainer:
    """Build a store container from a URL or from settings.

    Args:
        database_url: SQLAlchemy database URL, settings.DATABASE_URL if omitted

    Returns:
        StoreContainer instance
    """
    url = database_url or settings.DATABASE_URL
    dialect = Dialect.from_database_setting(url)
    logger.info(f"Opening stores with {dialect.value} dialect")
    return StoreContainer(create_database_engine(url), dialect)
