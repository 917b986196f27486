"""Walk a parsed node tree against template data."""

from __future__ import annotations

import logging
import operator
from collections.abc import Callable, Iterable, Mapping
from typing import Any

from .context import LoopFrame, RenderContext
from .exceptions import FilterError, TemplateRenderError
from .filters import FILTERS
from .nodes import (
    Compare,
    Expression,
    FilterCall,
    For,
    If,
    Literal,
    Node,
    Not,
    Output,
    PropertyPath,
    Set,
    Text,
)
from .values import (
    Value,
    is_list,
    is_number,
    is_truthy,
    length_of,
    to_text,
    values_equal,
)

logger = logging.getLogger(__name__)

_ORDERING: dict[str, Callable[[Any, Any], bool]] = {
    ">": operator.gt,
    ">=": operator.ge,
    "<": operator.lt,
    "<=": operator.le,
}


def _get_segment(obj: Any, segment: str | int) -> Any:
    """Look up one path segment, returning None for anything that is missing."""
    if isinstance(obj, Mapping):
        key = segment if isinstance(segment, str) else str(segment)
        return obj.get(key)

    if is_list(obj) or isinstance(obj, str):
        if isinstance(segment, int):
            if 0 <= segment < len(obj):
                return obj[segment]
            return None
        if segment == "length":
            return length_of(obj)

    return None


def _compare(op: str, left: Any, right: Any) -> bool:
    if op == "==":
        return values_equal(left, right)
    if op == "!=":
        return not values_equal(left, right)

    comparable = (is_number(left) and is_number(right)) or (
        isinstance(left, str) and isinstance(right, str)
    )
    if not comparable:
        return False
    return _ORDERING[op](left, right)


class Evaluator:
    """Render node trees using a fixed table of filters.

    Missing data never raises: unknown names and segments resolve to None and
    loops over non-lists run zero times. Unknown filters and failing filters
    raise and abort the render.
    """

    def __init__(self, filters: Mapping[str, Callable[..., Any]] | None = None) -> None:
        self.filters = FILTERS if filters is None else filters

    def render(
        self, nodes: Iterable[Node], data: Mapping[str, Any] | None = None
    ) -> str:
        """Render *nodes* against *data*.

        Args:
            nodes: Top-level template nodes.
            data: Root data mapping; never modified.

        Returns:
            The rendered output.

        Raises:
            TemplateRenderError: If a filter is unknown or fails.
        """
        if not isinstance(data, Mapping):
            data = {}
        ctx = RenderContext(data=data)
        buffer: list[str] = []
        self.render_nodes(nodes, ctx, buffer)
        return "".join(buffer)

    def render_nodes(
        self, nodes: Iterable[Node], ctx: RenderContext, buffer: list[str]
    ) -> None:
        for node in nodes:
            if isinstance(node, Text):
                buffer.append(node.content)
            elif isinstance(node, Output):
                value = self.evaluate(node.expression, ctx)
                value = self.apply_filters(value, node.filters, ctx)
                buffer.append(to_text(value))
            elif isinstance(node, If):
                self.render_if(node, ctx, buffer)
            elif isinstance(node, For):
                self.render_for(node, ctx, buffer)
            elif isinstance(node, Set):
                value = self.evaluate(node.expression, ctx)
                ctx.assign(node.name, self.apply_filters(value, node.filters, ctx))
            else:
                raise TemplateRenderError(f"Unknown node type: {type(node).__name__}")

    def render_if(self, node: If, ctx: RenderContext, buffer: list[str]) -> None:
        for condition, body in node.branches:
            if is_truthy(self.evaluate(condition, ctx)):
                self.render_nodes(body, ctx, buffer)
                return

        if node.else_body is not None:
            self.render_nodes(node.else_body, ctx, buffer)

    def render_for(self, node: For, ctx: RenderContext, buffer: list[str]) -> None:
        items = self.resolve(node.iterable, ctx)
        if not is_list(items):
            if items is not None:
                logger.debug(
                    "for loop target %s is not a list, skipping", node.iterable
                )
            return

        length = len(items)
        for index0, item in enumerate(items):
            with ctx.iteration(node.item_var, item, LoopFrame(index0, length)):
                self.render_nodes(node.body, ctx, buffer)

    def evaluate(self, expr: Expression, ctx: RenderContext) -> Value:
        if isinstance(expr, Literal):
            return expr.value
        if isinstance(expr, PropertyPath):
            return self.resolve(expr, ctx)
        if isinstance(expr, Not):
            return not is_truthy(self.evaluate(expr.operand, ctx))
        if isinstance(expr, Compare):
            left = self.evaluate(expr.left, ctx)
            right = self.evaluate(expr.right, ctx)
            return _compare(expr.op, left, right)
        raise TemplateRenderError(f"Unknown expression type: {type(expr).__name__}")

    def resolve(self, path: PropertyPath, ctx: RenderContext) -> Value:
        """Resolve a property path, innermost scope first, then the root data."""
        head, *rest = path.segments
        obj = ctx.lookup(str(head))
        for segment in rest:
            if obj is None:
                return None
            obj = _get_segment(obj, segment)
        return obj

    def apply_filters(
        self, value: Value, filters: Iterable[FilterCall], ctx: RenderContext
    ) -> Value:
        """Apply a filter chain left to right.

        Raises:
            TemplateRenderError: If a filter name is not registered.
            FilterError: If a filter fails.
        """
        for call in filters:
            filter_fn = self.filters.get(call.name)
            if filter_fn is None:
                raise TemplateRenderError(f"Unknown filter '{call.name}'")

            args = [self.evaluate(arg, ctx) for arg in call.args]
            try:
                value = filter_fn(value, *args)
            except Exception as e:
                raise FilterError(f"Filter '{call.name}' failed: {e}") from e

        return value
