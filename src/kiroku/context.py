"""Scope management for template rendering."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any

from .values import Value

LOOP_NAME = "loop"


@dataclass(frozen=True)
class LoopFrame:
    """Position of the current iteration of one ``for`` loop."""

    index0: int
    length: int

    @property
    def index(self) -> int:
        return self.index0 + 1

    @property
    def first(self) -> bool:
        return self.index0 == 0

    @property
    def last(self) -> bool:
        return self.index0 == self.length - 1

    def as_value(self) -> dict[str, Any]:
        """Return the ``loop`` mapping seen by templates."""
        return {
            "index": self.index,
            "index0": self.index0,
            "first": self.first,
            "last": self.last,
            "length": self.length,
        }


@dataclass
class RenderContext:
    """Context for a single render operation.

    Each render call gets its own context; nothing here outlives the call.
    Names are looked up in the scope frames innermost first, then in the
    active loop frame (for ``loop``), then in the root data.
    """

    # Root data, never mutated
    data: Mapping[str, Any] = field(default_factory=dict)

    # Bindings from `set` and loop variables, innermost last
    scopes: list[dict[str, Any]] = field(default_factory=lambda: [{}])

    # One entry per active loop, innermost last
    loops: list[LoopFrame] = field(default_factory=list)

    def lookup(self, name: str) -> Value:
        """Resolve a top-level name, or return None if it is not bound."""
        for scope in reversed(self.scopes):
            if name in scope:
                return scope[name]

        if name == LOOP_NAME and self.loops:
            return self.loops[-1].as_value()

        return self.data.get(name)

    def assign(self, name: str, value: Value) -> None:
        """Bind *name* in the innermost scope frame."""
        self.scopes[-1][name] = value

    @contextmanager
    def iteration(self, name: str, item: Any, loop: LoopFrame) -> Iterator[None]:
        """Push a scope binding *name* to *item* and the loop frame for one
        iteration, popping both afterwards."""
        self.scopes.append({name: item})
        self.loops.append(loop)
        try:
            yield
        finally:
            self.loops.pop()
            self.scopes.pop()
