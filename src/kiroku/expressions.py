"""Shared grammar for property paths, literals, conditions and filter calls.

Both output directives (``{{ title | upper }}``) and tag headers
(``{% if chapters.length > 5 %}``) are parsed with :class:`ExpressionParser`.
"""

from __future__ import annotations

import re
from typing import NamedTuple

from .exceptions import TemplateParseError
from .nodes import Compare, Expression, FilterCall, Literal, Not, PropertyPath

_KEYWORD_LITERALS = {
    "true": True,
    "false": False,
    "none": None,
    "null": None,
}

_RE_TOKEN = re.compile(
    r"""
    (?P<space>\s+)
    |(?P<number>-?\d+(?:\.\d+)?)
    |(?P<string>'(?:[^'\\]|\\.)*'|"(?:[^"\\]|\\.)*")
    |(?P<op>==|!=|>=|<=|>|<)
    |(?P<name>[A-Za-z_][A-Za-z0-9_]*)
    |(?P<punct>[.\[\](),|=])
    """,
    re.VERBOSE | re.DOTALL,
)

_RE_ESCAPE = re.compile(r"\\(['\"\\])")


class _ExprToken(NamedTuple):
    kind: str
    value: str


_EOF = _ExprToken("eof", "")


def _scan(source: str, lineno: int | None) -> list[_ExprToken]:
    tokens: list[_ExprToken] = []
    pos = 0

    while pos < len(source):
        match = _RE_TOKEN.match(source, pos)
        if match is None:
            raise TemplateParseError(f"Unexpected character {source[pos]!r}", lineno)
        kind = match.lastgroup or ""
        if kind != "space":
            tokens.append(_ExprToken(kind, match.group()))
        pos = match.end()

    return tokens


def _unquote(raw: str) -> str:
    return _RE_ESCAPE.sub(r"\1", raw[1:-1])


def _describe(token: _ExprToken) -> str:
    if token.kind == "eof":
        return "end of expression"
    return repr(token.value)


class ExpressionParser:
    """Recursive-descent parser over the body of a single directive."""

    def __init__(self, source: str, lineno: int | None = None) -> None:
        self.source = source
        self.lineno = lineno
        self.tokens = _scan(source, lineno)
        self.pos = 0

    def current(self) -> _ExprToken:
        if self.pos < len(self.tokens):
            return self.tokens[self.pos]
        return _EOF

    def next(self) -> _ExprToken:
        token = self.current()
        if token is not _EOF:
            self.pos += 1
        return token

    def error(self, message: str) -> TemplateParseError:
        return TemplateParseError(message, self.lineno)

    def accept_punct(self, value: str) -> bool:
        token = self.current()
        if token.kind == "punct" and token.value == value:
            self.pos += 1
            return True
        return False

    def expect_punct(self, value: str) -> None:
        if not self.accept_punct(value):
            raise self.error(
                f"Expected {value!r}, found {_describe(self.current())}"
            )

    def expect_keyword(self, keyword: str) -> None:
        token = self.next()
        if token.kind != "name" or token.value != keyword:
            raise self.error(f"Expected {keyword!r}, found {_describe(token)}")

    def expect_end(self) -> None:
        token = self.current()
        if token is not _EOF:
            raise self.error(f"Unexpected {_describe(token)}")

    def parse_identifier(self) -> str:
        token = self.next()
        if token.kind != "name" or token.value in _KEYWORD_LITERALS:
            raise self.error(f"Expected a name, found {_describe(token)}")
        return token.value

    def parse_path(self) -> PropertyPath:
        """Parse ``identifier ('.' identifier | '[' (integer | string) ']')*``."""
        segments: list[str | int] = [self.parse_identifier()]

        while True:
            if self.accept_punct("."):
                token = self.next()
                if token.kind != "name":
                    raise self.error(
                        f"Expected a property name after '.', found {_describe(token)}"
                    )
                segments.append(token.value)
            elif self.accept_punct("["):
                token = self.next()
                if token.kind == "number" and re.fullmatch(r"-?\d+", token.value):
                    segments.append(int(token.value))
                elif token.kind == "string":
                    segments.append(_unquote(token.value))
                else:
                    raise self.error(
                        f"Expected an integer or string index, found {_describe(token)}"
                    )
                self.expect_punct("]")
            else:
                return PropertyPath(tuple(segments))

    def parse_literal(self) -> Literal:
        token = self.next()
        if token.kind == "string":
            return Literal(_unquote(token.value))
        if token.kind == "number":
            if "." in token.value:
                return Literal(float(token.value))
            return Literal(int(token.value))
        if token.kind == "name" and token.value in _KEYWORD_LITERALS:
            return Literal(_KEYWORD_LITERALS[token.value])
        raise self.error(f"Expected a literal, found {_describe(token)}")

    def parse_operand(self) -> Expression:
        """Parse a literal or a property path."""
        token = self.current()
        if token.kind in ("string", "number"):
            return self.parse_literal()
        if token.kind == "name":
            if token.value in _KEYWORD_LITERALS:
                return self.parse_literal()
            if token.value in ("not", "and", "or", "in"):
                raise self.error(f"Unexpected {token.value!r}")
            return self.parse_path()
        raise self.error(f"Expected a value, found {_describe(token)}")

    def parse_filter_call(self) -> FilterCall:
        name = self.parse_identifier()
        args: list[Expression] = []

        if self.accept_punct("("):
            if not self.accept_punct(")"):
                args.append(self.parse_operand())
                while self.accept_punct(","):
                    args.append(self.parse_operand())
                self.expect_punct(")")

        return FilterCall(name, tuple(args), self.lineno)

    def parse_filter_chain(self) -> tuple[Expression, tuple[FilterCall, ...]]:
        """Parse ``operand ('|' filter)*``."""
        if self.current() is _EOF:
            raise self.error("Missing expression")

        expression = self.parse_operand()
        filters: list[FilterCall] = []
        while self.accept_punct("|"):
            filters.append(self.parse_filter_call())

        return expression, tuple(filters)

    def parse_condition(self) -> Expression:
        """Parse an ``if``/``elif`` condition.

        A condition is ``not operand``, a bare operand, or a single comparison
        ``operand op operand``. Boolean ``and``/``or`` chains are rejected.
        """
        token = self.current()
        if token is _EOF:
            raise self.error("Missing condition")

        if token.kind == "name" and token.value == "not":
            self.pos += 1
            return Not(self.parse_operand())

        left = self.parse_operand()
        token = self.current()
        if token.kind == "op":
            self.pos += 1
            return Compare(token.value, left, self.parse_operand())

        return left
