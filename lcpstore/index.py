"""Content index: encryption metadata keyed by content id."""

import logging
from typing import Any, Dict, Mapping

from sqlalchemy import LargeBinary, bindparam, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from lcpstore.cursor import ResultStream
from lcpstore.dialect import DEFAULT_CONTENT_TYPE, Dialect
from lcpstore.domain.models import Content
from lcpstore.exceptions import ContentNotFound

logger = logging.getLogger(__name__)

COLUMNS = "id, encryption_key, location, length, sha256, type"

STATEMENTS: Dict[str, str] = {
    "get": f"SELECT {COLUMNS} FROM content WHERE id = :id LIMIT 1",
    "add": (
        f"INSERT INTO content ({COLUMNS}) "
        "VALUES (:id, :encryption_key, :location, :length, :sha256, :type)"
    ),
    "update": (
        "UPDATE content SET encryption_key=:encryption_key, location=:location, "
        "length=:length, sha256=:sha256, type=:type WHERE id=:id"
    ),
    "list": f"SELECT {COLUMNS} FROM content",
}


def _map_content(row: Mapping[str, Any]) -> Content:
    key = row["encryption_key"]
    return Content(
        id=row["id"],
        encryption_key=bytes(key) if key is not None else b"",
        location=row["location"],
        length=row["length"],
        sha256=row["sha256"],
        type=row["type"],
    )


def _params(content: Content) -> Dict[str, Any]:
    return {
        "id": content.id,
        "encryption_key": content.encryption_key,
        "location": content.location,
        "length": content.length,
        "sha256": content.sha256,
        "type": content.type or DEFAULT_CONTENT_TYPE,
    }


class ContentIndex:
    """Data access object for the ``content`` table."""

    def __init__(self, engine: Engine, dialect: Dialect):
        """Bootstrap the content table and prepare statements.

        Args:
            engine: SQLAlchemy engine owned by the caller
            dialect: Backend flavour selected by the caller

        Raises:
            SQLAlchemyError: If the table cannot be created
        """
        self.engine = engine
        self.dialect = dialect
        self._bootstrap()
        self.statements = self._prepare()

    def _bootstrap(self) -> None:
        try:
            with self.engine.begin() as conn:
                conn.exec_driver_sql(self.dialect.content_table_ddl)
        except SQLAlchemyError as e:
            logger.error(f"Error creating content table: {e}")
            raise

        for migration in self.dialect.content_migrations:
            try:
                with self.engine.begin() as conn:
                    conn.exec_driver_sql(migration)
                logger.info("Applied content table migration: %s", migration)
            except SQLAlchemyError as e:
                # column already present
                logger.debug("Skipped content table migration: %s", e)

    def _prepare(self):
        statements = {
            "get": text(STATEMENTS["get"]).columns(encryption_key=LargeBinary),
            "add": text(STATEMENTS["add"]).bindparams(
                bindparam("encryption_key", type_=LargeBinary)
            ),
            "update": text(STATEMENTS["update"]).bindparams(
                bindparam("encryption_key", type_=LargeBinary)
            ),
            "list": text(STATEMENTS["list"]).columns(encryption_key=LargeBinary),
        }
        for name, sql in STATEMENTS.items():
            logger.debug("Prepared content.%s: %s", name, self.dialect.render(sql))
        return statements

    def get(self, content_id: str) -> Content:
        """Fetch a content record.

        Raises:
            ContentNotFound: If no row has this id
        """
        with self.engine.connect() as conn:
            row = conn.execute(self.statements["get"], {"id": content_id}).first()
        if row is None:
            raise ContentNotFound()
        return _map_content(row._mapping)

    def add(self, content: Content) -> None:
        """Insert a new content record.

        Raises:
            IntegrityError: If the id already exists
        """
        with self.engine.begin() as conn:
            conn.execute(self.statements["add"], _params(content))
        logger.info(f"Added content {content.id}")

    def update(self, content: Content) -> None:
        """Overwrite every mutable field of ``content.id``.

        A missing id is not reported: the statement simply matches no row.
        """
        with self.engine.begin() as conn:
            conn.execute(self.statements["update"], _params(content))
        logger.info(f"Updated content {content.id}")

    def list(self) -> ResultStream[Content]:
        """Stream every content record; close the stream if you stop early."""
        return ResultStream.open(self.engine, self.statements["list"], None, _map_content)
