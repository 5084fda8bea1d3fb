"""
Backend Factory for namedsql

Picks the backend class for a connection object. Lookup walks the
connection's type hierarchy, so subclasses of a registered connection type
use the same backend. Unregistered connections fall back to the generic
DB-API backend.
"""

import logging
import sqlite3
from typing import Any, Dict, List, Type

from sqlalchemy.engine import Connection as SQLAlchemyConnection

from namedsql.backends.base import BaseBackend
from namedsql.backends.dbapi_backend import DBAPIBackend
from namedsql.backends.sqlalchemy_backend import SQLAlchemyBackend
from namedsql.backends.sqlite_backend import SQLiteBackend

logger = logging.getLogger(__name__)


# =============================================================================
# BACKEND REGISTRY
# =============================================================================

# Map of connection type -> backend class
_BACKEND_REGISTRY: Dict[type, Type[BaseBackend]] = {
    sqlite3.Connection: SQLiteBackend,
    SQLAlchemyConnection: SQLAlchemyBackend,
}


def register_backend(connection_type: type, backend_class: Type[BaseBackend]) -> None:
    """
    Register a backend class for a connection type.

    Args:
        connection_type: Class of the driver connection objects
        backend_class: Backend to wrap those connections with
    """
    _BACKEND_REGISTRY[connection_type] = backend_class
    logger.info(f"Registered backend {backend_class.__name__} for {connection_type.__name__}")


def list_backends() -> List[str]:
    """Get the engines of the registered backends."""
    return sorted({backend.ENGINE for backend in _BACKEND_REGISTRY.values()})


def get_backend(connection: Any) -> BaseBackend:
    """
    Wrap a connection in the matching backend.

    Example:
        backend = get_backend(sqlite3.connect(":memory:"))
        assert isinstance(backend, SQLiteBackend)
    """
    for cls in type(connection).__mro__:
        backend_class = _BACKEND_REGISTRY.get(cls)
        if backend_class is not None:
            return backend_class(connection)

    logger.debug(f"No backend registered for {type(connection).__name__}, using DB-API backend")
    return DBAPIBackend(connection)
