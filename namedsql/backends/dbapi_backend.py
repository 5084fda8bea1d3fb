"""
DB-API 2.0 Backend for namedsql

Works with any PEP 249 connection (sqlite3, psycopg2, mysql-connector,
duckdb, ...). Query text and arguments go straight to cursor.execute(), so
placeholders must use the driver's own paramstyle.

Transactions are left to the caller: nothing here commits or rolls back.
"""

import logging
from typing import Any, Tuple

from namedsql.backends.base import BaseBackend, ExecResult, Row

logger = logging.getLogger(__name__)


class DBAPIBackend(BaseBackend):
    """
    Backend for a PEP 249 connection.

    Example:
        backend = DBAPIBackend(psycopg2.connect(dsn))
        queries.execute(backend, "create-user", "user@example.com")

    query() returns the driver cursor positioned on the result set; the
    caller iterates or fetches from it and closes it.
    """

    ENGINE = "dbapi"

    def _run_query(self, sql: str, args: Tuple[Any, ...]) -> Any:
        cursor = self.connection.cursor()
        try:
            cursor.execute(sql, args)
        except Exception:
            cursor.close()
            raise
        return cursor

    def _run_execute(self, sql: str, args: Tuple[Any, ...]) -> ExecResult:
        cursor = self.connection.cursor()
        try:
            cursor.execute(sql, args)
            return ExecResult(
                rowcount=cursor.rowcount,
                lastrowid=getattr(cursor, "lastrowid", None),
            )
        finally:
            cursor.close()

    def _fetch_row(self, sql: str, args: Tuple[Any, ...]) -> Row:
        cursor = self.connection.cursor()
        try:
            cursor.execute(sql, args)
            values = cursor.fetchone()
            columns = [desc[0] for desc in cursor.description or []]
        finally:
            cursor.close()
        return Row(values, columns=columns)
