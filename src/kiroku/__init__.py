"""Kiroku - a small templating language for exporting book annotations.

Kiroku renders user-authored export templates (Markdown or plain text) against
a JSON-like data tree of book metadata, chapters and highlights. The syntax is
a Jinja2-style subset: ``{{ expr | filter }}`` output, ``{% if %}``,
``{% for %}`` and ``{% set %}`` tags, and ``{# comments #}``.

Example:
    >>> from kiroku import render, validate
    >>> render("## {{ title }}\\n{% for c in chapters %}- {{ c.title }}\\n{% endfor %}",
    ...        {"title": "Emma", "chapters": [{"title": "One"}, {"title": "Two"}]})
    '## Emma\\n- One\\n- Two\\n'
    >>> validate("{% if title %}").is_valid
    False
"""

from __future__ import annotations

from .exceptions import (
    FilterError,
    KirokuError,
    TemplateLexError,
    TemplateParseError,
    TemplateRenderError,
    TemplateSyntaxError,
)
from .filters import FILTERS
from .template import Template, ValidationResult, render, validate

__version__ = "0.1.0"

__all__ = [
    # Main API
    "render",
    "validate",
    "Template",
    "ValidationResult",
    "FILTERS",
    # Exceptions
    "KirokuError",
    "TemplateSyntaxError",
    "TemplateLexError",
    "TemplateParseError",
    "TemplateRenderError",
    "FilterError",
    # Version
    "__version__",
]
