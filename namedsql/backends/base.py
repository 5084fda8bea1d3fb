"""
Base Backend for namedsql

A backend turns query text into database calls. The dispatch layer only
needs the capability methods (prepare, query, execute, query_row and their
*_context twins); BaseBackend provides them on top of four primitives so
each concrete backend stays small.

DESIGN PRINCIPLES:
-----------------
1. Query text and arguments reach the driver untouched
2. Driver exceptions are raised as they are (never wrapped)
3. query_row never raises: failures are stored on the Row and raised by scan()
4. Context variants refuse to start once the context is done; backends that
   can interrupt a running statement override _with_context()
5. Backends do not own the connection: callers open and close it
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Sequence, Tuple, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class NoRowsError(LookupError):
    """Raised by Row.scan() when the query returned no rows."""

    def __init__(self):
        super().__init__("no rows in result set")


class StatementClosedError(Exception):
    """Raised when a closed prepared statement is used."""
    pass


@dataclass
class ExecResult:
    """
    Outcome of a statement that returns no rows.

    Attributes:
        rowcount: Rows affected (-1 when the driver cannot tell)
        lastrowid: Id of the last inserted row, if the driver reports it
    """
    rowcount: int = -1
    lastrowid: Optional[Any] = None


class Row:
    """
    Lazy single-row handle returned by query_row().

    Errors raised while running the query are kept and re-raised by scan().
    """

    def __init__(
        self,
        values: Optional[Sequence[Any]] = None,
        columns: Optional[List[str]] = None,
        error: Optional[BaseException] = None,
    ):
        self._values = tuple(values) if values is not None else None
        self.columns = columns or []
        self.error = error

    def scan(self) -> Tuple[Any, ...]:
        """
        Get the row values.

        Raises:
            NoRowsError: If the query returned no rows
            Exception: Whatever the backend raised while running the query
        """
        if self.error is not None:
            raise self.error
        if self._values is None:
            raise NoRowsError()
        return self._values

    def as_dict(self) -> dict:
        """Get the row as a column -> value dict."""
        return dict(zip(self.columns, self.scan()))

    def __repr__(self):
        if self.error is not None:
            return f"Row(error={self.error!r})"
        return f"Row({self._values!r})"


class PreparedStatement:
    """
    Query text bound to a backend, reusable across calls.

    Usage:
        with backend.prepare("SELECT * FROM users WHERE id = ?") as stmt:
            row = stmt.query_row(1)
    """

    def __init__(self, backend: "BaseBackend", sql: str):
        self.backend = backend
        self.sql = sql
        self.closed = False

    def _check_open(self):
        if self.closed:
            raise StatementClosedError("statement is closed")

    def query(self, *args: Any) -> Any:
        self._check_open()
        return self.backend.query(self.sql, *args)

    def query_context(self, ctx: Any, *args: Any) -> Any:
        self._check_open()
        return self.backend.query_context(ctx, self.sql, *args)

    def execute(self, *args: Any) -> ExecResult:
        self._check_open()
        return self.backend.execute(self.sql, *args)

    def execute_context(self, ctx: Any, *args: Any) -> ExecResult:
        self._check_open()
        return self.backend.execute_context(ctx, self.sql, *args)

    def query_row(self, *args: Any) -> Row:
        if self.closed:
            return Row(error=StatementClosedError("statement is closed"))
        return self.backend.query_row(self.sql, *args)

    def close(self) -> None:
        """Release the statement. Safe to call more than once."""
        if not self.closed:
            self.closed = True
            self.backend._release(self)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def __repr__(self):
        state = "closed" if self.closed else "open"
        return f"PreparedStatement({self.sql!r}, {state})"


class BaseBackend(ABC):
    """
    Abstract base class for execution backends.

    Each backend must implement:
    - _run_query(): run a statement and return a result set
    - _run_execute(): run a statement and return an ExecResult
    - _fetch_row(): run a statement and return its first row
    - _compile(): check that a statement can be prepared
    """

    # Engine identifier (e.g., "sqlite", "dbapi", "sqlalchemy")
    ENGINE: str = "base"

    def __init__(self, connection: Any):
        self.connection = connection

    # =========================================================================
    # PRIMITIVES
    # =========================================================================

    @abstractmethod
    def _run_query(self, sql: str, args: Tuple[Any, ...]) -> Any:
        pass

    @abstractmethod
    def _run_execute(self, sql: str, args: Tuple[Any, ...]) -> ExecResult:
        pass

    @abstractmethod
    def _fetch_row(self, sql: str, args: Tuple[Any, ...]) -> Row:
        pass

    def _compile(self, sql: str) -> None:
        """Validate a statement before handing out a PreparedStatement."""
        pass

    def _release(self, statement: PreparedStatement) -> None:
        logger.debug(f"{self.ENGINE}: released statement {statement.sql!r}")

    def _with_context(self, ctx: Any, operation: Callable[[], T]) -> T:
        """Run an operation under a context (None = no context)."""
        if ctx is not None:
            ctx.raise_if_done()
        return operation()

    # =========================================================================
    # CAPABILITIES
    # =========================================================================

    def prepare(self, sql: str) -> PreparedStatement:
        self._compile(sql)
        logger.debug(f"{self.ENGINE}: prepared statement {sql!r}")
        return PreparedStatement(self, sql)

    def prepare_context(self, ctx: Any, sql: str) -> PreparedStatement:
        return self._with_context(ctx, lambda: self.prepare(sql))

    def query(self, sql: str, *args: Any) -> Any:
        return self._run_query(sql, args)

    def query_context(self, ctx: Any, sql: str, *args: Any) -> Any:
        return self._with_context(ctx, lambda: self._run_query(sql, args))

    def execute(self, sql: str, *args: Any) -> ExecResult:
        return self._run_execute(sql, args)

    def execute_context(self, ctx: Any, sql: str, *args: Any) -> ExecResult:
        return self._with_context(ctx, lambda: self._run_execute(sql, args))

    def query_row(self, sql: str, *args: Any) -> Row:
        try:
            return self._fetch_row(sql, args)
        except Exception as e:
            return Row(error=e)

    def query_row_context(self, ctx: Any, sql: str, *args: Any) -> Row:
        try:
            return self._with_context(ctx, lambda: self._fetch_row(sql, args))
        except Exception as e:
            return Row(error=e)

    def __repr__(self):
        return f"{type(self).__name__}(engine={self.ENGINE!r})"
