"""Immutable node tree produced by the parser."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

# Expressions


@dataclass(frozen=True)
class Literal:
    value: Any


@dataclass(frozen=True)
class PropertyPath:
    """A dotted/bracketed lookup such as ``chapters[0].annotations.length``.

    The first segment is always a name; later segments are names or integer
    indexes.
    """

    segments: tuple[str | int, ...]

    def __str__(self) -> str:
        parts = [str(self.segments[0])]
        for segment in self.segments[1:]:
            if isinstance(segment, int):
                parts.append(f"[{segment}]")
            else:
                parts.append(f".{segment}")
        return "".join(parts)


@dataclass(frozen=True)
class Not:
    operand: Expression


@dataclass(frozen=True)
class Compare:
    op: str
    left: Expression
    right: Expression


Expression = Union[Literal, PropertyPath, Not, Compare]


@dataclass(frozen=True)
class FilterCall:
    name: str
    args: tuple[Expression, ...] = ()
    lineno: int | None = None


# Template nodes


@dataclass(frozen=True)
class Text:
    content: str


@dataclass(frozen=True)
class Output:
    expression: Expression
    filters: tuple[FilterCall, ...] = ()
    lineno: int | None = None


@dataclass(frozen=True)
class If:
    branches: tuple[tuple[Expression, tuple[Node, ...]], ...]
    else_body: tuple[Node, ...] | None = None


@dataclass(frozen=True)
class For:
    item_var: str
    iterable: PropertyPath
    body: tuple[Node, ...] = ()


@dataclass(frozen=True)
class Set:
    name: str
    expression: Expression
    filters: tuple[FilterCall, ...] = ()
    lineno: int | None = None


Node = Union[Text, Output, If, For, Set]
