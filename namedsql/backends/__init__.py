"""
Execution Backends for namedsql

Ready-made implementations of the capability protocols consumed by the
dispatch layer (prepare / query / execute / query_row and *_context twins).

Supported connections:
- sqlite3.Connection -> SQLiteBackend (statement interruption on cancel)
- sqlalchemy Connection -> SQLAlchemyBackend
- any other PEP 249 connection -> DBAPIBackend

Usage:
    from namedsql.backends import get_backend

    backend = get_backend(sqlite3.connect("app.db"))
    queries.execute(backend, "create-user", "user@example.com")
"""

from namedsql.backends.base import (
    BaseBackend,
    ExecResult,
    NoRowsError,
    PreparedStatement,
    Row,
    StatementClosedError,
)
from namedsql.backends.dbapi_backend import DBAPIBackend
from namedsql.backends.factory import get_backend, list_backends, register_backend
from namedsql.backends.sqlalchemy_backend import SQLAlchemyBackend
from namedsql.backends.sqlite_backend import SQLiteBackend

__all__ = [
    "BaseBackend",
    "ExecResult",
    "NoRowsError",
    "PreparedStatement",
    "Row",
    "StatementClosedError",
    "DBAPIBackend",
    "SQLiteBackend",
    "SQLAlchemyBackend",
    "get_backend",
    "list_backends",
    "register_backend",
]
