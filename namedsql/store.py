"""
Query Store

Holds the name -> query mapping built from one or more sources and hands
rendered query text to the dispatch layer.

LIFECYCLE:
----------
A store is built once (from a stream, file, string, bytes, directory, or by
merging other stores) and never changes afterwards. with_data() and
with_options() return lightweight views that share the same mapping and only
differ in the data used to render templates, so a single store can be read
from many threads without locking.

Usage:
    queries = load_file("queries/users.sql")

    queries.execute(backend, "create-user", "user@example.com")
    rows = queries.query(backend, "find-user-by-email", "user@example.com")

    active = queries.with_data({"only_active": True})
    rows = active.query(backend, "list-users")
"""

import io
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import IO, Any, Dict, Iterator, List, Mapping, Optional, Union

from namedsql.config import Settings, get_settings
from namedsql.dispatch import DispatchMixin
from namedsql.exceptions import LoadError, QueryNotFoundError
from namedsql.scanner import iter_lines, scan
from namedsql.templates import QueryTemplate, TemplateEngine, get_engine

logger = logging.getLogger(__name__)

PathLike = Union[str, "os.PathLike[str]"]


@dataclass(frozen=True)
class QueryDefinition:
    """
    A named query.

    Attributes:
        name: Query identifier (unique within a store)
        body: Raw query text as written in the source
        template: Compiled form of the body
        source: Path the query was loaded from, if any
    """
    name: str
    body: str
    template: QueryTemplate = field(repr=False, compare=False)
    source: Optional[str] = None


class QueryStore(DispatchMixin):
    """
    Immutable collection of named queries.

    Besides the dispatch wrappers (prepare, query, execute, query_row and
    their *_context twins, prepare_all), a store exposes lookup and
    introspection helpers.
    """

    def __init__(
        self,
        definitions: Optional[Mapping[str, QueryDefinition]] = None,
        path: Optional[str] = None,
    ):
        """
        Args:
            definitions: Mapping of name to definition (copied)
            path: Single source file the store was loaded from, used in
                  not-found errors
        """
        self._definitions: Dict[str, QueryDefinition] = dict(definitions or {})
        self._data: Optional[Mapping[str, Any]] = None
        self.path = path

    # =========================================================================
    # LOOKUP
    # =========================================================================

    def lookup(self, name: str) -> QueryDefinition:
        """
        Get a query definition by exact name.

        Raises:
            QueryNotFoundError: If no query has this name
        """
        try:
            return self._definitions[name]
        except KeyError:
            raise QueryNotFoundError(name, self.path) from None

    def render(self, name: str) -> str:
        """
        Resolve a name to query text, rendered with this handle's data.

        Raises:
            QueryNotFoundError: If no query has this name
            RenderError: If the template fails against the data
        """
        return self.lookup(name).template.render(self._data)

    def raw(self, name: str) -> str:
        """Get the raw, unrendered text of a query."""
        return self.lookup(name).body

    def names(self) -> List[str]:
        return list(self._definitions)

    def queries(self) -> Dict[str, str]:
        """Snapshot of name -> raw query text."""
        return {name: d.body for name, d in self._definitions.items()}

    def templates(self) -> Dict[str, QueryTemplate]:
        """Snapshot of name -> compiled template."""
        return {name: d.template for name, d in self._definitions.items()}

    @property
    def data(self) -> Mapping[str, Any]:
        """Render data attached to this handle (read-only)."""
        return MappingProxyType(dict(self._data or {}))

    def __contains__(self, name: object) -> bool:
        return name in self._definitions

    def __iter__(self) -> Iterator[str]:
        return iter(self._definitions)

    def __len__(self) -> int:
        return len(self._definitions)

    def __repr__(self):
        source = f", path={self.path!r}" if self.path else ""
        return f"QueryStore(queries={len(self)}{source})"

    # =========================================================================
    # VIEWS
    # =========================================================================

    def with_data(self, data: Optional[Mapping[str, Any]]) -> "QueryStore":
        """
        Return a view of this store that renders templates with `data`.

        The query mapping is shared, not copied; this store is unchanged.
        """
        view = type(self).__new__(type(self))
        view._definitions = self._definitions
        view._data = dict(data) if data is not None else None
        view.path = self.path
        return view

    def with_options(self, **values: Any) -> "QueryStore":
        """
        Return a view whose render data is this handle's data updated with
        the given keyword values.
        """
        return self.with_data({**(self._data or {}), **values})


# =============================================================================
# BUILDING STORES
# =============================================================================

def _build(
    raw_queries: Mapping[str, str],
    engine: TemplateEngine,
    source: Optional[str] = None,
    sources: Optional[Mapping[str, str]] = None,
) -> Dict[str, QueryDefinition]:
    """Compile every raw query; the first syntax error aborts the build."""
    definitions = {}
    for name, body in raw_queries.items():
        origin = sources[name] if sources else source
        definitions[name] = QueryDefinition(
            name=name,
            body=body,
            template=engine.compile(name, body),
            source=origin,
        )
    return definitions


def _resolve(engine: Optional[TemplateEngine], settings: Optional[Settings]):
    settings = settings or get_settings()
    return engine or get_engine(settings), settings


def _scan_stream(stream: IO, settings: Settings, path: Optional[str] = None) -> Dict[str, str]:
    """Scan a text or binary stream, turning read failures into LoadError."""
    wrapper = None
    if isinstance(stream, (io.RawIOBase, io.BufferedIOBase)):
        # Split on "\n" only, like a str stream; iter_lines drops a trailing "\r"
        wrapper = io.TextIOWrapper(stream, encoding=settings.encoding, newline="\n")
        stream = wrapper

    try:
        return scan(iter_lines(stream, settings.max_line_length, path=path))
    except (OSError, UnicodeDecodeError) as e:
        source = f"'{path}'" if path else "stream"
        raise LoadError(f"namedsql: failed to read queries from {source}: {e}", path=path) from e
    finally:
        if wrapper is not None:
            # Leave the caller's binary stream open
            wrapper.detach()


def load(
    stream: IO,
    engine: Optional[TemplateEngine] = None,
    settings: Optional[Settings] = None,
) -> QueryStore:
    """
    Load tagged queries from a text or binary stream.

    The stream is read line by line and is not closed.

    Raises:
        LoadError: If the stream cannot be read or decoded
        TemplateSyntaxError: If a query body is not a valid template
    """
    engine, settings = _resolve(engine, settings)
    raw_queries = _scan_stream(stream, settings)
    store = QueryStore(_build(raw_queries, engine))
    logger.debug(f"Loaded {len(store)} queries from stream")
    return store


def load_file(
    path: PathLike,
    engine: Optional[TemplateEngine] = None,
    settings: Optional[Settings] = None,
) -> QueryStore:
    """
    Load tagged queries from a file.

    Raises:
        LoadError: If the file cannot be opened or read
        TemplateSyntaxError: If a query body is not a valid template
    """
    engine, settings = _resolve(engine, settings)
    path = os.fspath(path)

    try:
        f = open(path, "r", encoding=settings.encoding, newline="\n")
    except OSError as e:
        raise LoadError(f"namedsql: could not open '{path}': {e.strerror or e}", path=path) from e

    with f:
        raw_queries = _scan_stream(f, settings, path=path)

    store = QueryStore(_build(raw_queries, engine, source=path), path=path)
    logger.debug(f"Loaded {len(store)} queries from {path}")
    return store


def load_string(
    text: str,
    engine: Optional[TemplateEngine] = None,
    settings: Optional[Settings] = None,
) -> QueryStore:
    """Load tagged queries from a string."""
    return load(io.StringIO(text), engine=engine, settings=settings)


def load_bytes(
    data: bytes,
    encoding: Optional[str] = None,
    engine: Optional[TemplateEngine] = None,
    settings: Optional[Settings] = None,
) -> QueryStore:
    """
    Load tagged queries from bytes.

    Args:
        data: Encoded query text
        encoding: Overrides the configured encoding
    """
    settings = settings or get_settings()
    if encoding is not None:
        settings = settings.model_copy(update={"encoding": encoding})
    return load(io.BytesIO(data), engine=engine, settings=settings)


def load_directory(
    path: PathLike,
    recursive: Optional[bool] = None,
    extension: Optional[str] = None,
    engine: Optional[TemplateEngine] = None,
    settings: Optional[Settings] = None,
) -> QueryStore:
    """
    Load one query per file from a directory.

    Each file whose name ends with the extension becomes a single query,
    named after the file with the extension stripped; the whole file is the
    query body. Files are visited in sorted path order, so with `recursive`
    a later file shadows an earlier one of the same name.

    Args:
        path: Directory to read
        recursive: Descend into subdirectories (default from settings)
        extension: File extension to match (default from settings)

    Raises:
        LoadError: If the directory cannot be read or holds no matching file
        TemplateSyntaxError: If a query body is not a valid template
    """
    engine, settings = _resolve(engine, settings)
    recursive = settings.recursive if recursive is None else recursive
    extension = extension or settings.extension
    if not extension.startswith("."):
        extension = "." + extension

    root = Path(path)
    if not root.is_dir():
        raise LoadError(f"namedsql: '{root}' is not a directory", path=str(root))

    try:
        candidates = root.rglob("*") if recursive else root.iterdir()
        files = sorted(
            p for p in candidates
            if p.is_file() and p.name.endswith(extension) and len(p.name) > len(extension)
        )
    except OSError as e:
        raise LoadError(f"namedsql: could not list '{root}': {e.strerror or e}", path=str(root)) from e

    if not files:
        raise LoadError(f"namedsql: no '{extension}' files found in '{root}'", path=str(root))

    raw_queries: Dict[str, str] = {}
    sources: Dict[str, str] = {}
    for file in files:
        name = file.name[:-len(extension)]
        try:
            with open(file, "r", encoding=settings.encoding, newline="\n") as f:
                raw_queries[name] = f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise LoadError(f"namedsql: failed to read '{file}': {e}", path=str(file)) from e
        sources[name] = str(file)

    store = QueryStore(_build(raw_queries, engine, sources=sources))
    logger.debug(f"Loaded {len(store)} queries from directory {root}")
    return store


def merge(*stores: QueryStore) -> QueryStore:
    """
    Combine stores into a new one.

    Stores are applied in argument order: a name defined by several stores
    takes the definition of the last one. The inputs are not modified and
    the result shares no mutable state with them.
    """
    definitions: Dict[str, QueryDefinition] = {}
    for store in stores:
        definitions.update(store._definitions)
    return QueryStore(definitions)
