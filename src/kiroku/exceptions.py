"""Exception classes for Kiroku."""

from __future__ import annotations


class KirokuError(Exception):
    """Base exception for all kiroku errors."""


class TemplateSyntaxError(KirokuError):
    """Template source could not be turned into a node tree."""

    def __init__(self, message: str, lineno: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.lineno = lineno

    def __str__(self) -> str:
        if self.lineno is None:
            return self.message
        return f"Invalid template syntax at line {self.lineno}: {self.message}"


class TemplateLexError(TemplateSyntaxError):
    """A directive was opened but never closed."""


class TemplateParseError(TemplateSyntaxError):
    """Block tags are unbalanced or an expression is malformed."""


class TemplateRenderError(KirokuError):
    """Error during template rendering."""


class FilterError(TemplateRenderError):
    """Filter application failed."""
