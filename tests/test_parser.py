"""Tests for the template parser."""

from __future__ import annotations

import pytest
from kiroku.exceptions import TemplateLexError, TemplateParseError
from kiroku.nodes import (
    Compare,
    FilterCall,
    For,
    If,
    Literal,
    Not,
    Output,
    PropertyPath,
    Set,
    Text,
)
from kiroku.parser import MAX_DEPTH, parse_template


class TestParser:
    """Tests for building node trees."""

    def test_text_and_output(self) -> None:
        """Test text and output directives become nodes in order."""
        nodes = parse_template("Book: {{ title | upper }}")
        assert nodes == (
            Text("Book: "),
            Output(PropertyPath(("title",)), (FilterCall("upper", (), 1),), 1),
        )

    def test_if_elif_else(self) -> None:
        """Test branches and else body are collected on one node."""
        (node,) = parse_template(
            "{% if n > 5 %}many{% elif n > 1 %}some{% else %}few{% endif %}"
        )
        assert node == If(
            (
                (Compare(">", PropertyPath(("n",)), Literal(5)), (Text("many"),)),
                (Compare(">", PropertyPath(("n",)), Literal(1)), (Text("some"),)),
            ),
            (Text("few"),),
        )

    def test_if_without_else(self) -> None:
        """Test an if without else has no else body."""
        (node,) = parse_template("{% if not x %}y{% endif %}")
        assert isinstance(node, If)
        assert node.branches == ((Not(PropertyPath(("x",))), (Text("y"),)),)
        assert node.else_body is None

    def test_nested_for(self) -> None:
        """Test loops nest inside loops."""
        (node,) = parse_template(
            "{% for c in chapters %}{% for a in c.annotations %}"
            "{{ a.text }}{% endfor %}{% endfor %}"
        )
        assert isinstance(node, For)
        assert node.item_var == "c"
        assert node.iterable == PropertyPath(("chapters",))
        (inner,) = node.body
        assert isinstance(inner, For)
        assert inner.iterable == PropertyPath(("c", "annotations"))
        assert inner.body == (Output(PropertyPath(("a", "text")), (), 1),)

    def test_set(self) -> None:
        """Test set parses a filtered value without opening a block."""
        nodes = parse_template("{% set first = chapters | first %}{{ first.title }}")
        assert nodes[0] == Set(
            "first", PropertyPath(("chapters",)), (FilterCall("first", (), 1),), 1
        )
        assert isinstance(nodes[1], Output)

    def test_nodes_are_immutable(self) -> None:
        """Test the node tree cannot be modified."""
        (node,) = parse_template("{% for c in chapters %}x{% endfor %}")
        with pytest.raises(AttributeError):
            node.item_var = "d"  # type: ignore[misc]
        assert isinstance(node.body, tuple)


class TestParseErrors:
    """Tests for structural and expression errors."""

    @pytest.mark.parametrize(
        "source,message",
        [
            ("{% if true %}content", "Unclosed 'if' block"),
            ("{% for item in items %}content", "Unclosed 'for' block"),
            ("{% endif %}", "Unexpected 'endif' without an open 'if' block"),
            ("{% endfor %}", "Unexpected 'endfor' without an open 'for' block"),
            ("{% else %}", "Unexpected 'else' outside of an 'if' block"),
            ("{% elif x %}", "Unexpected 'elif' outside of an 'if' block"),
            ("{% if a %}{% else %}{% else %}{% endif %}", "after 'else'"),
            ("{% if a %}{% else %}{% elif b %}{% endif %}", "after 'else'"),
            ("{% for x in y %}{% endif %}", "expected 'endfor'"),
            ("{% for x in y %}{% if a %}{% endfor %}", "expected 'endif'"),
            ("{% include 'x' %}", "Unknown tag 'include'"),
            ("{% %}", "Empty tag"),
            ("{% for x y %}{% endfor %}", "Expected 'in'"),
            ("{% set = 1 %}", "Expected a name"),
            ("{% set x 1 %}", "Expected '='"),
            ("{% endif extra %}", "Unexpected"),
            ("{{ }}", "Missing expression"),
            ("{{ a b }}", "Unexpected 'b'"),
        ],
    )
    def test_invalid_templates(self, source: str, message: str) -> None:
        """Test each malformed template is rejected with a clear message."""
        with pytest.raises(TemplateParseError, match=message):
            parse_template(source)

    def test_unclosed_block_reports_opening_line(self) -> None:
        """Test the error names the line of the unclosed block."""
        with pytest.raises(TemplateParseError) as excinfo:
            parse_template("a\nb\n{% for x in xs %}\nc")
        assert excinfo.value.lineno == 3

    def test_lex_errors_propagate(self) -> None:
        """Test lexer errors surface unchanged."""
        with pytest.raises(TemplateLexError):
            parse_template("Hello {{ name")

    def test_nesting_limit(self) -> None:
        """Test blocks may nest up to the limit but not past it."""
        parse_template("{% if x %}" * MAX_DEPTH + "{% endif %}" * MAX_DEPTH)

        source = "{% for x in xs %}" * (MAX_DEPTH + 1)
        with pytest.raises(TemplateParseError, match="nested too deeply"):
            parse_template(source)
