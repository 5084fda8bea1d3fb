"""
SQLAlchemy Backend for namedsql

Runs named queries through a SQLAlchemy Connection, which gives access to
every dialect SQLAlchemy supports while keeping raw SQL in query files.

Query text is sent with Connection.exec_driver_sql(), so placeholders use
the underlying driver's paramstyle (e.g. "?" for sqlite, "%s" for
psycopg2) and positional arguments are passed as a tuple.

Example:
    engine = create_engine("postgresql+psycopg2://...")
    with engine.begin() as conn:
        backend = SQLAlchemyBackend(conn)
        queries.execute(backend, "create-user", "user@example.com")
"""

import logging
from typing import Any, Tuple

from sqlalchemy.engine import Connection, CursorResult

from namedsql.backends.base import BaseBackend, ExecResult, Row

logger = logging.getLogger(__name__)


class SQLAlchemyBackend(BaseBackend):
    """
    Backend for a SQLAlchemy Connection.

    query() returns the CursorResult; the caller consumes and closes it.
    """

    ENGINE = "sqlalchemy"

    def __init__(self, connection: Connection):
        super().__init__(connection)

    def _run(self, sql: str, args: Tuple[Any, ...]) -> CursorResult:
        if args:
            return self.connection.exec_driver_sql(sql, args)
        return self.connection.exec_driver_sql(sql)

    def _run_query(self, sql: str, args: Tuple[Any, ...]) -> CursorResult:
        return self._run(sql, args)

    def _run_execute(self, sql: str, args: Tuple[Any, ...]) -> ExecResult:
        result = self._run(sql, args)
        try:
            return ExecResult(
                rowcount=result.rowcount,
                lastrowid=result.lastrowid,
            )
        finally:
            result.close()

    def _fetch_row(self, sql: str, args: Tuple[Any, ...]) -> Row:
        result = self._run(sql, args)
        columns = list(result.keys()) if result.returns_rows else []
        values = result.first() if result.returns_rows else None
        return Row(values, columns=columns)
