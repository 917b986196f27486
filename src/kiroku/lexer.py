"""Split template source into literal text runs and directive tokens."""

from __future__ import annotations

from typing import NamedTuple

from .exceptions import TemplateLexError

TEXT = "TEXT"
OUTPUT = "OUTPUT"
TAG = "TAG"

# opening delimiter -> (closing delimiter, token kind or None for comments)
_DELIMITERS: dict[str, tuple[str, str | None]] = {
    "{{": ("}}", OUTPUT),
    "{%": ("%}", TAG),
    "{#": ("#}", None),
}


class Token(NamedTuple):
    kind: str
    value: str
    lineno: int


class Lexer:
    """Scan template source into ``TEXT``, ``OUTPUT`` and ``TAG`` tokens.

    Tag and comment directives swallow the newline that directly follows them,
    and the spaces or tabs between the start of their line and the directive.
    Output directives keep the surrounding whitespace untouched.
    """

    def __init__(self, source: str) -> None:
        self.source = source
        self.pos = 0
        self.tokens: list[Token] = []
        # Line number at _line_pos, moved by _lineno as the scan advances
        self._line = 1
        self._line_pos = 0

    def tokenize(self) -> list[Token]:
        source = self.source
        text_start = 0

        while True:
            start = self._find_opening(self.pos)
            if start < 0:
                self._emit_text(text_start, len(source))
                return self.tokens

            opening = source[start : start + 2]
            closing, kind = _DELIMITERS[opening]
            lineno = self._lineno(start)

            body_start = start + 2
            end = self._find_closing(body_start, closing, quoted=kind is not None)
            if end < 0:
                if kind is None:
                    # Unclosed "{#" is text, as in "## Notes {#notes}"
                    self.pos = body_start
                    continue
                raise TemplateLexError(f"Unterminated '{opening}'", lineno)

            text_end = start
            if kind != OUTPUT:
                text_end = self._lstrip_start(text_start, start)
            self._emit_text(text_start, text_end)

            if kind is not None:
                self.tokens.append(
                    Token(kind, source[body_start:end].strip(), lineno)
                )

            self.pos = end + len(closing)
            if kind != OUTPUT:
                self.pos = self._skip_newline(self.pos)
            text_start = self.pos

    def _find_opening(self, pos: int) -> int:
        source = self.source
        while True:
            index = source.find("{", pos)
            if index < 0 or index + 1 >= len(source):
                return -1
            if source[index + 1] in "{%#":
                return index
            pos = index + 1

    def _find_closing(self, pos: int, closing: str, quoted: bool = True) -> int:
        """Return the index of *closing*, ignoring delimiters inside quotes.

        Comment bodies are free text, so apostrophes there do not open a
        string literal.
        """
        source = self.source
        quote: str | None = None

        while pos < len(source):
            ch = source[pos]
            if quote is not None:
                if ch == "\\":
                    pos += 2
                    continue
                if ch == quote:
                    quote = None
            elif quoted and ch in ("'", '"'):
                quote = ch
            elif source.startswith(closing, pos):
                return pos
            pos += 1

        return -1

    def _lstrip_start(self, text_start: int, directive_start: int) -> int:
        """Return where the preceding text should end so that indentation
        before a block directive on its own line is dropped."""
        index = directive_start
        while index > text_start and self.source[index - 1] in " \t":
            index -= 1
        if index == 0 or self.source[index - 1] == "\n":
            return index
        return directive_start

    def _skip_newline(self, pos: int) -> int:
        if self.source.startswith("\r\n", pos):
            return pos + 2
        if self.source.startswith("\n", pos):
            return pos + 1
        return pos

    def _emit_text(self, start: int, end: int) -> None:
        if end > start:
            self.tokens.append(
                Token(TEXT, self.source[start:end], self._lineno(start))
            )

    def _lineno(self, pos: int) -> int:
        if pos >= self._line_pos:
            self._line += self.source.count("\n", self._line_pos, pos)
        else:
            self._line -= self.source.count("\n", pos, self._line_pos)
        self._line_pos = pos
        return self._line


def tokenize(source: str) -> list[Token]:
    """Tokenize template source.

    Args:
        source: The template source string.

    Returns:
        The token list, in source order.

    Raises:
        TemplateLexError: If a ``{{`` or ``{%`` is never closed. An unclosed
            ``{#`` is kept as text.
    """
    return Lexer(source).tokenize()
