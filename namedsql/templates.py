"""
Query Templates

Query bodies are compiled once at load time and rendered on every dispatch.
The store only depends on the small contract below, so the engine can be
swapped:

    engine.compile(name, text) -> QueryTemplate   (raises TemplateSyntaxError)
    template.render(data)      -> str             (raises RenderError)

Engines:
- JinjaEngine: Jinja2 with autoescape off (we generate SQL, not HTML) and
  trailing newlines kept, so plain query text renders byte-for-byte.
- PlainEngine: no templating; the raw text is returned as-is.
"""

from abc import ABC, abstractmethod
from typing import Any, Mapping, Optional

import jinja2

from namedsql.config import Settings, get_settings
from namedsql.exceptions import RenderError, TemplateSyntaxError


class QueryTemplate(ABC):
    """A compiled query body."""

    def __init__(self, name: str, source: str):
        self.name = name
        self.source = source

    @abstractmethod
    def render(self, data: Optional[Mapping[str, Any]] = None) -> str:
        """
        Render the query text.

        Args:
            data: Values referenced by the template (None = no data)

        Raises:
            RenderError: If the template fails against the data
        """
        pass

    def __repr__(self):
        return f"{type(self).__name__}(name={self.name!r})"


class TemplateEngine(ABC):
    """Compiles query bodies into QueryTemplate objects."""

    @abstractmethod
    def compile(self, name: str, text: str) -> QueryTemplate:
        """
        Compile one query body.

        Raises:
            TemplateSyntaxError: If the body is not a valid template
        """
        pass


# =============================================================================
# PLAIN TEXT
# =============================================================================

class PlainTemplate(QueryTemplate):
    def render(self, data: Optional[Mapping[str, Any]] = None) -> str:
        return self.source


class PlainEngine(TemplateEngine):
    """Engine used when templating is disabled."""

    def compile(self, name: str, text: str) -> QueryTemplate:
        return PlainTemplate(name, text)


# =============================================================================
# JINJA2
# =============================================================================

class JinjaTemplate(QueryTemplate):
    def __init__(self, name: str, source: str, template: jinja2.Template):
        super().__init__(name, source)
        self._template = template

    def render(self, data: Optional[Mapping[str, Any]] = None) -> str:
        try:
            return self._template.render(dict(data or {}))
        except Exception as e:
            raise RenderError(self.name, e) from e


class JinjaEngine(TemplateEngine):
    """
    Jinja2-backed engine.

    With strict_undefined, referencing a value missing from the render data
    fails the render; otherwise it renders as empty / false.
    """

    def __init__(self, strict_undefined: bool = False, environment: Optional[jinja2.Environment] = None):
        if environment is None:
            environment = jinja2.Environment(
                autoescape=False,
                keep_trailing_newline=True,
                undefined=jinja2.StrictUndefined if strict_undefined else jinja2.Undefined,
            )
        self.environment = environment

    def compile(self, name: str, text: str) -> QueryTemplate:
        try:
            template = self.environment.from_string(text)
        except jinja2.TemplateSyntaxError as e:
            raise TemplateSyntaxError(name, e.lineno, e.message) from e
        return JinjaTemplate(name, text, template)


def get_engine(settings: Optional[Settings] = None) -> TemplateEngine:
    """Build the engine selected by the settings."""
    settings = settings or get_settings()
    if not settings.templating:
        return PlainEngine()
    return JinjaEngine(strict_undefined=settings.strict_undefined)
