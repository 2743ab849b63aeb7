"""Lazy, forward-only iteration over query results."""

import logging
from typing import Any, Callable, Iterator, Mapping, Optional, TypeVar

from sqlalchemy.engine import Connection, Engine, Result

logger = logging.getLogger(__name__)

RecordType = TypeVar("RecordType")


class ResultStream(Iterator[RecordType]):
    """Iterator over the rows of an open cursor, mapped to records.

    The stream holds a pooled connection until it is exhausted or closed.
    Exhaustion or an error while fetching releases the cursor automatically;
    callers that stop early must call ``close()`` (or use the stream as a context manager).
    A closed stream cannot be restarted: further ``next()`` calls raise
    StopIteration.
    """

    def __init__(
        self,
        connection: Connection,
        result: Result,
        mapper: Callable[[Mapping[str, Any]], RecordType],
    ):
        self._connection = connection
        self._result = result
        self._mapper = mapper
        self._closed = False

    @classmethod
    def open(
        cls,
        engine: Engine,
        statement,
        params: Optional[Mapping[str, Any]],
        mapper: Callable[[Mapping[str, Any]], RecordType],
    ) -> "ResultStream[RecordType]":
        """Check out a connection, run ``statement`` and wrap its cursor.

        Raises:
            SQLAlchemyError: If the query cannot be executed; the connection
                is returned to the pool before the error propagates
        """
        connection = engine.connect()
        try:
            result = connection.execute(statement, params or {})
        except Exception:
            connection.close()
            raise
        return cls(connection, result, mapper)

    @property
    def closed(self) -> bool:
        return self._closed

    def __iter__(self) -> "ResultStream[RecordType]":
        return self

    def __next__(self) -> RecordType:
        if self._closed:
            raise StopIteration
        try:
            row = self._result.fetchone()
            if row is None:
                self.close()
                raise StopIteration
            return self._mapper(row._mapping)
        except BaseException:
            self.close()
            raise

    def close(self) -> None:
        """Release the cursor and return the connection to the pool."""
        if self._closed:
            return
        self._closed = True
        try:
            self._result.close()
        finally:
            self._connection.close()
        logger.debug("Result stream closed")

    def __enter__(self) -> "ResultStream[RecordType]":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
