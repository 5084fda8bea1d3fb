"""
SQLite Backend for namedsql

SQLite is ideal for:
- Local development and testing
- Single-file embedded databases
- Running named queries without any infrastructure

Features on top of the generic DB-API backend:
- prepare() asks SQLite to compile the statement, so syntax errors and
  unknown tables surface at preparation time
- Context variants interrupt a running statement once the context is
  cancelled or its deadline passes, and raise the context error

Requirements:
    None - sqlite3 is included in Python standard library
"""

import logging
import sqlite3
from typing import Any, Callable, TypeVar

from namedsql.backends.dbapi_backend import DBAPIBackend

logger = logging.getLogger(__name__)

T = TypeVar("T")

# SQLite virtual machine instructions between two cancellation checks
DEFAULT_PROGRESS_INTERVAL = 1000


class SQLiteBackend(DBAPIBackend):
    """
    Backend for a sqlite3 connection.

    Example:
        conn = sqlite3.connect(":memory:")
        backend = SQLiteBackend(conn)

        ctx = Context.background().with_timeout(2.0)
        cursor = queries.query_context(backend, ctx, "monthly-report")

    Only statement execution runs under the context; rows fetched from a
    returned cursor afterwards are not interrupted.
    """

    ENGINE = "sqlite"

    def __init__(self, connection: sqlite3.Connection, progress_interval: int = DEFAULT_PROGRESS_INTERVAL):
        super().__init__(connection)
        self.progress_interval = progress_interval

    def _compile(self, sql: str) -> None:
        # EXPLAIN compiles the statement without running it
        cursor = self.connection.cursor()
        try:
            cursor.execute("EXPLAIN " + sql)
        except sqlite3.ProgrammingError as e:
            # Compiled fine; only the parameter values are missing
            if "bindings" not in str(e):
                raise
        finally:
            cursor.close()

    def _with_context(self, ctx: Any, operation: Callable[[], T]) -> T:
        if ctx is None:
            return operation()

        ctx.raise_if_done()
        self.connection.set_progress_handler(lambda: 1 if ctx.done() else 0, self.progress_interval)
        try:
            return operation()
        except sqlite3.OperationalError as e:
            error = ctx.err()
            if error is not None:
                logger.debug(f"sqlite: statement interrupted ({error})")
                raise error from e
            raise
        finally:
            self.connection.set_progress_handler(None, 0)
