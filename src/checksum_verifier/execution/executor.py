"""
Checksum query execution through DB-API cursors.

The checksum engine only produces queries and consumes results; this module
is the thin adapter that runs a ChecksumQuery on a cursor (Trino/Presto,
PostgreSQL, or any PEP 249 driver) and materializes the single result row.
Driver errors are propagated unchanged once retries are exhausted.
"""

import logging
from typing import Any, Protocol

from ..checksum import ChecksumQuery, ChecksumResult
from ..utils.retry import retry_database_operation

logger = logging.getLogger(__name__)


class QueryExecutor(Protocol):
    """Anything that can run a checksum query and return its result."""

    def execute(self, query: ChecksumQuery) -> ChecksumResult:
        ...


@retry_database_operation(max_retries=3, base_delay=1.0)
def _fetch_checksum_row(cursor: Any, sql: str) -> tuple:
    cursor.execute(sql)
    row = cursor.fetchone()
    if row is None:
        raise ValueError("Checksum query returned no rows")
    return tuple(row)


class CursorQueryExecutor:
    """
    Runs checksum queries on a DB-API cursor

    The result row is laid out as count(*) followed by query.field_names, so
    field names are taken from the query rather than cursor.description
    (drivers differ in how they case or truncate column labels).
    """

    def __init__(self, cursor: Any, dialect: str = "presto"):
        """
        Args:
            cursor: DB-API cursor connected to the control or test backend
            dialect: sqlglot dialect to render the query in
        """
        self.cursor = cursor
        self.dialect = dialect

    def execute(self, query: ChecksumQuery) -> ChecksumResult:
        """
        Execute a checksum query and return its result

        Raises:
            ValueError: If the result row does not match the query layout
            Exception: Driver errors, after transient ones were retried
        """
        sql = query.sql(dialect=self.dialect)
        logger.debug(f"Executing checksum query on {query.source.sql()}")

        row = _fetch_checksum_row(self.cursor, sql)

        field_names = ("count", *query.field_names)
        if len(row) != len(field_names):
            raise ValueError(
                f"Checksum row has {len(row)} columns, expected {len(field_names)}"
            )
        return ChecksumResult.from_row(field_names, row)
