"""Main Template class and the render/validate entry points."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from .evaluator import Evaluator
from .exceptions import KirokuError, TemplateSyntaxError
from .nodes import Node
from .parser import parse_template

logger = logging.getLogger(__name__)

ERROR_FORMAT = "[Template Error: {message}]"


class Template:
    """A parsed Kiroku template.

    Parsing happens once, in the constructor; the node tree can then be
    rendered against any number of data trees.
    """

    def __init__(
        self,
        source: str,
        *,
        filters: Mapping[str, Callable[..., Any]] | None = None,
    ) -> None:
        """Initialize a template.

        Args:
            source: The template source string.
            filters: Filter table to render with. Defaults to the built-in
                registry.

        Raises:
            TemplateLexError: If a directive is never closed.
            TemplateParseError: If the template is structurally invalid.
        """
        self._source = source
        self._nodes = parse_template(source)
        self._evaluator = Evaluator(filters)
        logger.debug("Parsed template into %d top-level nodes", len(self._nodes))

    @property
    def source(self) -> str:
        return self._source

    @property
    def nodes(self) -> tuple[Node, ...]:
        return self._nodes

    def render(self, data: Mapping[str, Any] | None = None, **context: Any) -> str:
        """Render the template with the given data.

        Args:
            data: Root data tree. It is never modified.
            **context: Extra top-level variables, taking precedence over
                keys in *data*.

        Returns:
            The rendered template string.

        Raises:
            TemplateRenderError: If a filter is unknown or fails.
        """
        if context:
            data = {**(data or {}), **context}
        return self._evaluator.render(self._nodes, data)


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of :func:`validate`."""

    is_valid: bool
    error: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return the ``{"isValid": ..., "error": ...}`` shape used by callers
        that exchange results as JSON."""
        result: dict[str, Any] = {"isValid": self.is_valid}
        if self.error is not None:
            result["error"] = self.error
        return result


def validate(source: str) -> ValidationResult:
    """Check that a template lexes and parses.

    Data and filters are not touched, so an unknown filter name is not
    reported here; it only fails when rendered.

    Args:
        source: The template source string.

    Returns:
        A valid result, or an invalid one carrying the syntax error message.
    """
    try:
        parse_template(source)
    except TemplateSyntaxError as e:
        logger.debug("Template failed validation: %s", e)
        return ValidationResult(is_valid=False, error=str(e))
    return ValidationResult(is_valid=True)


def render(source: str, data: Mapping[str, Any] | None = None) -> str:
    """Render a template string, never raising for template problems.

    Any lex, parse or render error replaces the whole output with
    ``[Template Error: <message>]`` so callers always get a usable string.

    Args:
        source: The template source string.
        data: Root data tree.

    Returns:
        The rendered output, or the inline error diagnostic.

    Example:
        >>> render("Book: {{ title | upper }}", {"title": "Emma"})
        'Book: EMMA'
    """
    try:
        return Template(source).render(data)
    except KirokuError as e:
        logger.warning("Template rendering failed: %s", e)
        return ERROR_FORMAT.format(message=e)
