"""
namedsql Exceptions

Every failure raised by the library derives from NamedSQLError, so callers
can catch the whole family with one except clause. Failures coming from an
execution backend are NOT wrapped: they reach the caller unchanged.

ERROR TAXONOMY:
---------------
- QueryNotFoundError: requested name absent from the store
- LoadError: a query source could not be opened, read or decoded
- TemplateSyntaxError: a query body does not compile as a template
- RenderError: a compiled template failed against the supplied data
- EmptyQuerySetError: bulk preparation over a store with no queries
- ContextError: a cancellation context was cancelled or timed out
"""

from typing import Any, Dict, Optional


class NamedSQLError(Exception):
    """Base exception for namedsql."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self):
        return self.message


class QueryNotFoundError(NamedSQLError):
    """Raised when a query name is not present in the store."""

    def __init__(self, name: str, path: Optional[str] = None):
        message = f"namedsql: '{name}' could not be found"
        if path:
            message += f" in '{path}'"
        super().__init__(message, details={"name": name, "path": path})
        self.name = name
        self.path = path


class LoadError(NamedSQLError):
    """Raised when a query source cannot be opened, read or decoded."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message, details={"path": path} if path else {})
        self.path = path


class LineTooLongError(LoadError):
    """Raised when a source line exceeds the configured line ceiling."""

    def __init__(self, line_number: int, limit: int, path: Optional[str] = None):
        super().__init__(
            f"namedsql: line {line_number} exceeds the maximum line length of {limit} characters",
            path=path,
        )
        self.line_number = line_number
        self.limit = limit


class TemplateSyntaxError(NamedSQLError):
    """Raised at load time when a query body is not a valid template."""

    def __init__(self, name: str, lineno: Optional[int], message: str):
        location = f" (line {lineno})" if lineno else ""
        super().__init__(
            f"namedsql: query '{name}' has invalid template syntax{location}: {message}",
            details={"name": name, "lineno": lineno},
        )
        self.name = name
        self.lineno = lineno


class RenderError(NamedSQLError):
    """Raised when a compiled query template fails to render."""

    def __init__(self, name: str, original_error: Exception):
        super().__init__(
            f"namedsql: query '{name}' failed to render: {original_error}",
            details={"name": name},
        )
        self.name = name
        self.original_error = original_error


class EmptyQuerySetError(NamedSQLError):
    """Raised when preparing every query of a store that holds none."""

    def __init__(self):
        super().__init__("namedsql: no queries to prepare")


class ContextError(NamedSQLError):
    """Base exception for a context that is done."""
    pass


class ContextCancelledError(ContextError):
    """Raised when an operation runs under a cancelled context."""

    def __init__(self):
        super().__init__("context cancelled")


class DeadlineExceededError(ContextError):
    """Raised when an operation runs past the context deadline."""

    def __init__(self):
        super().__init__("context deadline exceeded")
