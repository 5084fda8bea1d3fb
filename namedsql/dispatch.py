"""
Named Query Dispatch

Resolves a query name to its rendered text and forwards it to an execution
backend. Backends are described by narrow capability protocols, one per
operation shape, so any object with the right method works: a DB-API
wrapper, a SQLAlchemy connection wrapper, or a test double.

CONTRACT:
---------
1. The name is resolved and rendered first (attached data applied).
2. If resolution or rendering fails, the backend is never called.
3. Otherwise the backend is called exactly once with the rendered text and
   the caller's arguments (and context) untouched; its result is returned
   and its exceptions propagate as they are.
"""

import logging
from typing import Any, Callable, Dict, Iterable, List, Protocol, Tuple

from namedsql.exceptions import EmptyQuerySetError

logger = logging.getLogger(__name__)


# =============================================================================
# BACKEND CAPABILITIES
# =============================================================================

class Preparer(Protocol):
    def prepare(self, query: str) -> Any: ...


class PreparerContext(Protocol):
    def prepare_context(self, ctx: Any, query: str) -> Any: ...


class Queryer(Protocol):
    def query(self, query: str, *args: Any) -> Any: ...


class QueryerContext(Protocol):
    def query_context(self, ctx: Any, query: str, *args: Any) -> Any: ...


class Execer(Protocol):
    def execute(self, query: str, *args: Any) -> Any: ...


class ExecerContext(Protocol):
    def execute_context(self, ctx: Any, query: str, *args: Any) -> Any: ...


class QueryRower(Protocol):
    def query_row(self, query: str, *args: Any) -> Any: ...


class QueryRowerContext(Protocol):
    def query_row_context(self, ctx: Any, query: str, *args: Any) -> Any: ...


class Closer(Protocol):
    def close(self) -> Any: ...


# =============================================================================
# DISPATCH
# =============================================================================

class DispatchMixin:
    """
    Named-query wrappers around the backend capabilities.

    Mixed into QueryStore; relies on its render() and names() methods.
    """

    def prepare(self, db: Preparer, name: str) -> Any:
        """Prepare the named query."""
        query = self.render(name)
        return db.prepare(query)

    def prepare_context(self, db: PreparerContext, ctx: Any, name: str) -> Any:
        """Prepare the named query under a context."""
        query = self.render(name)
        return db.prepare_context(ctx, query)

    def query(self, db: Queryer, name: str, *args: Any) -> Any:
        """Run the named query and return the backend's result set."""
        query = self.render(name)
        return db.query(query, *args)

    def query_context(self, db: QueryerContext, ctx: Any, name: str, *args: Any) -> Any:
        query = self.render(name)
        return db.query_context(ctx, query, *args)

    def execute(self, db: Execer, name: str, *args: Any) -> Any:
        """Execute the named statement and return the backend's exec result."""
        query = self.render(name)
        return db.execute(query, *args)

    def execute_context(self, db: ExecerContext, ctx: Any, name: str, *args: Any) -> Any:
        query = self.render(name)
        return db.execute_context(ctx, query, *args)

    def query_row(self, db: QueryRower, name: str, *args: Any) -> Any:
        """
        Run the named query for a single row.

        The backend's row handle is returned as-is; backend errors surface
        when the row is scanned, not here.
        """
        query = self.render(name)
        return db.query_row(query, *args)

    def query_row_context(self, db: QueryRowerContext, ctx: Any, name: str, *args: Any) -> Any:
        query = self.render(name)
        return db.query_row_context(ctx, query, *args)

    def prepare_all(self, db: Preparer) -> Dict[str, Any]:
        """
        Prepare every query in the store.

        Statements are prepared one at a time. If any preparation fails (or
        the loop is interrupted) the statements prepared so far are closed
        and the original exception is re-raised.

        Returns:
            Mapping of query name to prepared statement

        Raises:
            EmptyQuerySetError: If the store holds no queries
        """
        return self._prepare_each(lambda query: db.prepare(query))

    def prepare_all_context(self, db: PreparerContext, ctx: Any) -> Dict[str, Any]:
        """Context variant of prepare_all()."""
        return self._prepare_each(lambda query: db.prepare_context(ctx, query))

    def _prepare_each(self, prepare: Callable[[str], Any]) -> Dict[str, Any]:
        names = self.names()
        if not names:
            raise EmptyQuerySetError()

        prepared: List[Tuple[str, Any]] = []
        try:
            for name in names:
                prepared.append((name, prepare(self.render(name))))
        except BaseException:
            _close_all(statement for _, statement in prepared)
            raise

        return dict(prepared)


def _close_all(statements: Iterable[Closer]) -> None:
    """Close statements, continuing past close failures."""
    for statement in statements:
        try:
            statement.close()
        except Exception as e:
            logger.warning(f"Error closing prepared statement: {e}")
