"""
namedsql - keep SQL in .sql files, call it by name.

namedsql is not an ORM and not a query builder. Queries live in plain text
files, tagged with a name:

    -- name: create-user
    INSERT INTO users (email) VALUES (?)

    -- name: find-user-by-email
    SELECT id, email FROM users WHERE email = ?

Example:
    import sqlite3
    import namedsql
    from namedsql.backends import SQLiteBackend

    queries = namedsql.load_file("queries/users.sql")
    backend = SQLiteBackend(sqlite3.connect("app.db"))

    queries.execute(backend, "create-user", "user@example.com")
    row = queries.query_row(backend, "find-user-by-email", "user@example.com")
    user_id, email = row.scan()
"""

from namedsql.config import Settings, get_settings, reset_settings
from namedsql.context import Context
from namedsql.exceptions import (
    NamedSQLError,
    QueryNotFoundError,
    LoadError,
    LineTooLongError,
    TemplateSyntaxError,
    RenderError,
    EmptyQuerySetError,
    ContextError,
    ContextCancelledError,
    DeadlineExceededError,
)
from namedsql.scanner import get_tag, scan
from namedsql.store import (
    QueryDefinition,
    QueryStore,
    load,
    load_bytes,
    load_directory,
    load_file,
    load_string,
    merge,
)
from namedsql.templates import JinjaEngine, PlainEngine, QueryTemplate, TemplateEngine

__version__ = "1.0.0"
__all__ = [
    # Loading
    "load",
    "load_file",
    "load_string",
    "load_bytes",
    "load_directory",
    "merge",
    "QueryStore",
    "QueryDefinition",
    # Scanning
    "get_tag",
    "scan",
    # Templates
    "TemplateEngine",
    "QueryTemplate",
    "JinjaEngine",
    "PlainEngine",
    # Context
    "Context",
    # Config
    "Settings",
    "get_settings",
    "reset_settings",
    # Errors
    "NamedSQLError",
    "QueryNotFoundError",
    "LoadError",
    "LineTooLongError",
    "TemplateSyntaxError",
    "RenderError",
    "EmptyQuerySetError",
    "ContextError",
    "ContextCancelledError",
    "DeadlineExceededError",
]
