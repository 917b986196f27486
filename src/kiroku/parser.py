"""Template parsing: token stream to an immutable node tree."""

from __future__ import annotations

from dataclasses import dataclass, field

from .exceptions import TemplateParseError
from .expressions import ExpressionParser
from .lexer import OUTPUT, TAG, TEXT, Token, tokenize
from .nodes import Expression, For, If, Node, Output, PropertyPath, Set, Text


@dataclass
class _IfFrame:
    lineno: int
    branches: list[tuple[Expression, list[Node]]]
    else_body: list[Node] | None = None

    @property
    def body(self) -> list[Node]:
        if self.else_body is not None:
            return self.else_body
        return self.branches[-1][1]

    def build(self) -> If:
        else_body = None if self.else_body is None else tuple(self.else_body)
        return If(
            tuple((condition, tuple(body)) for condition, body in self.branches),
            else_body,
        )


@dataclass
class _ForFrame:
    lineno: int
    item_var: str
    iterable: PropertyPath
    body: list[Node] = field(default_factory=list)

    def build(self) -> For:
        return For(self.item_var, self.iterable, tuple(self.body))


_Frame = _IfFrame | _ForFrame

_TAG_NAMES = {_IfFrame: "if", _ForFrame: "for"}

# Deepest allowed stack of open if/for blocks
MAX_DEPTH = 100


class Parser:
    """Build a node tree from lexer tokens.

    Block tags (``if``/``elif``/``else``/``endif`` and ``for``/``endfor``) are
    matched with an explicit stack of open frames, so a misplaced closing tag
    is reported where it occurs and unclosed blocks are reported at the end.
    """

    def __init__(self, tokens: list[Token]) -> None:
        self.tokens = tokens
        self.root: list[Node] = []
        self.stack: list[_Frame] = []

    @property
    def body(self) -> list[Node]:
        if not self.stack:
            return self.root
        return self.stack[-1].body

    def parse(self) -> tuple[Node, ...]:
        for token in self.tokens:
            if token.kind == TEXT:
                self.body.append(Text(token.value))
            elif token.kind == OUTPUT:
                self.body.append(self.parse_output(token))
            elif token.kind == TAG:
                self.parse_tag(token)
            else:
                raise TemplateParseError(f"Unexpected token {token.kind}", token.lineno)

        if self.stack:
            frame = self.stack[-1]
            name = _TAG_NAMES[type(frame)]
            raise TemplateParseError(f"Unclosed '{name}' block", frame.lineno)

        return tuple(self.root)

    def parse_output(self, token: Token) -> Output:
        parser = ExpressionParser(token.value, token.lineno)
        expression, filters = parser.parse_filter_chain()
        parser.expect_end()
        return Output(expression, filters, token.lineno)

    def parse_tag(self, token: Token) -> None:
        parts = token.value.split(None, 1)
        keyword = parts[0] if parts else ""
        rest = parts[1] if len(parts) > 1 else ""
        parser = ExpressionParser(rest, token.lineno)

        if keyword == "if":
            condition = parser.parse_condition()
            parser.expect_end()
            self._push(_IfFrame(token.lineno, [(condition, [])]))

        elif keyword == "elif":
            frame = self._open_if(token, "elif")
            condition = parser.parse_condition()
            parser.expect_end()
            frame.branches.append((condition, []))

        elif keyword == "else":
            frame = self._open_if(token, "else")
            parser.expect_end()
            frame.else_body = []

        elif keyword == "endif":
            self._close(token, keyword, _IfFrame)
            parser.expect_end()

        elif keyword == "for":
            item_var = parser.parse_identifier()
            parser.expect_keyword("in")
            iterable = parser.parse_path()
            parser.expect_end()
            self._push(_ForFrame(token.lineno, item_var, iterable))

        elif keyword == "endfor":
            self._close(token, keyword, _ForFrame)
            parser.expect_end()

        elif keyword == "set":
            name = parser.parse_identifier()
            parser.expect_punct("=")
            expression, filters = parser.parse_filter_chain()
            parser.expect_end()
            self.body.append(Set(name, expression, filters, token.lineno))

        elif not keyword:
            raise TemplateParseError("Empty tag", token.lineno)

        else:
            raise TemplateParseError(f"Unknown tag {keyword!r}", token.lineno)

    def _push(self, frame: _Frame) -> None:
        if len(self.stack) >= MAX_DEPTH:
            raise TemplateParseError(
                f"Blocks nested too deeply (more than {MAX_DEPTH} levels)",
                frame.lineno,
            )
        self.stack.append(frame)

    def _open_if(self, token: Token, keyword: str) -> _IfFrame:
        frame = self.stack[-1] if self.stack else None
        if not isinstance(frame, _IfFrame):
            raise TemplateParseError(
                f"Unexpected '{keyword}' outside of an 'if' block", token.lineno
            )
        if frame.else_body is not None:
            raise TemplateParseError(
                f"Unexpected '{keyword}' after 'else'", token.lineno
            )
        return frame

    def _close(self, token: Token, keyword: str, frame_type: type) -> None:
        name = _TAG_NAMES[frame_type]

        if not self.stack:
            raise TemplateParseError(
                f"Unexpected '{keyword}' without an open '{name}' block", token.lineno
            )

        frame = self.stack[-1]
        if not isinstance(frame, frame_type):
            raise TemplateParseError(
                f"Unexpected '{keyword}', expected 'end{_TAG_NAMES[type(frame)]}' "
                f"for the block opened at line {frame.lineno}",
                token.lineno,
            )

        self.stack.pop()
        self.body.append(frame.build())


def parse_template(source: str) -> tuple[Node, ...]:
    """Parse a template string into a node tree.

    Args:
        source: The template source string.

    Returns:
        The top-level nodes of the template.

    Raises:
        TemplateLexError: If a directive is never closed.
        TemplateParseError: If block tags are unbalanced or an expression
            is malformed.
    """
    return Parser(tokenize(source)).parse()
