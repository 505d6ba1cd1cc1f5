"""hierrorchy/parser.py: node declaration text → :class:`NodeDeclaration`.

The text is matched against :data:`hierrorchy.grammar.NODE_GRAMMAR` and the
resulting Parsimonious tree is folded into a declaration by
:class:`NodeDeclarationBuilder`.

* **Fail-fast with location**: a failed match raises
  :class:`NodeGrammarError` naming the expected token and pointing at the
  position where matching stopped.
* **Order preserving**: variants are kept in declaration order; their
  positions become the variant tags.
"""

from __future__ import annotations

import ast as python_ast
import keyword
import logging
import re
from typing import Any, List, Optional

from parsimonious.exceptions import ParseError
from parsimonious.nodes import Node, NodeVisitor

from hierrorchy.errors import ErrorCodes, NodeGrammarError, SourceSpan
from hierrorchy.grammar import NODE_GRAMMAR, describe_rule
from hierrorchy.model import NodeDeclaration, TypeReference, Visibility

logger = logging.getLogger(__name__)

__all__ = ["NodeDeclarationBuilder", "parse_node_declaration"]

_TOKEN_RE = re.compile(r"[A-Za-z0-9_]+|\S")


def _optional(value: Any) -> Any:
    """Unwrap the result of an ``x?`` rule: the visited child, or None."""
    if isinstance(value, list) and value:
        return value[0]
    return None


class NodeDeclarationBuilder(NodeVisitor):
    """Transforms the Parsimonious parse tree into a :class:`NodeDeclaration`."""

    grammar = NODE_GRAMMAR
    unwrapped_exceptions = (NodeGrammarError,)

    def __init__(self, text: str, span: Optional[SourceSpan] = None) -> None:
        self._text = text
        self._span = span or SourceSpan()

    def generic_visit(self, node: Node, visited_children: List[Any]) -> Any:
        return visited_children or node

    # ─────────────────────────────────────────────────────────────
    # Declaration
    # ─────────────────────────────────────────────────────────────

    def visit_node_decl(self, node, visited_children):
        _, visibility, _, _, name, _, variants, _, prefix = visited_children
        return NodeDeclaration(
            name=name,
            variants=tuple(variants),
            visibility=_optional(visibility) or Visibility.DEFAULT,
            message_prefix=prefix,
            span=self._span,
        )

    def visit_visibility(self, node, visited_children):
        return Visibility.PUBLIC

    def visit_tail(self, node, visited_children):
        return visited_children[0]

    def visit_prefix(self, node, visited_children):
        _, _, literal, _, _ = visited_children
        return literal

    def visit_end_of_input(self, node, visited_children):
        return None

    # ─────────────────────────────────────────────────────────────
    # Variants
    # ─────────────────────────────────────────────────────────────

    def visit_variant_list(self, node, visited_children):
        _, _, variants, _ = visited_children
        return _optional(variants) or []

    def visit_variants(self, node, visited_children):
        first, _, rest, _ = visited_children
        refs = [first]
        if isinstance(rest, list):
            refs.extend(rest)
        return refs

    def visit_more_variant(self, node, visited_children):
        _, _, ref, _ = visited_children
        return ref

    def visit_type_ref(self, node, visited_children):
        return TypeReference(name=node.text, offset=node.start)

    # ─────────────────────────────────────────────────────────────
    # Tokens
    # ─────────────────────────────────────────────────────────────

    def visit_identifier(self, node, visited_children):
        if keyword.iskeyword(node.text) or keyword.issoftkeyword(node.text):
            raise NodeGrammarError(
                f"Expected identifier, got Python keyword {node.text!r}",
                span=self._span.offset(self._text, node.start),
                expected=["identifier"],
                got=node.text,
            ).with_hint("Error type names must be usable as Python names")
        return node.text

    def visit_string_literal(self, node, visited_children):
        try:
            value = python_ast.literal_eval(node.text)
        except (SyntaxError, ValueError) as exc:
            raise NodeGrammarError(
                f"Invalid string literal {node.text}: {exc}",
                code=ErrorCodes.NODE_STRING,
                span=self._span.offset(self._text, node.start),
                expected=["string literal"],
                got=node.text,
            ) from exc
        return value


def _grammar_error(text: str, exc: ParseError, span: SourceSpan) -> NodeGrammarError:
    pos = min(max(exc.pos, 0), len(text))
    rule = getattr(exc.expr, "name", "") or ""
    expected = describe_rule(rule) if rule else "node declaration"

    match = _TOKEN_RE.match(text, pos)
    if match is None:
        while match is None and pos < len(text) and text[pos].isspace():
            pos += 1
            match = _TOKEN_RE.match(text, pos)
    got = match.group(0) if match else ""
    got_desc = repr(got) if got else "end of input"

    error = NodeGrammarError(
        f"Expected {expected}, got {got_desc}",
        span=span.offset(text, pos),
        expected=[expected],
        got=got,
    )
    if rule == "close_angle" and got[:1].isidentifier():
        error.with_hint("Separate variants with ','")
    elif rule == "string_literal":
        error.with_hint('Quote the message prefix, e.g. = "custom prefix"')
    elif rule == "type_kw":
        error.with_hint("Node declarations look like: [pub] type Name<Child, ...> [= \"prefix\"]")
    return error


def parse_node_declaration(text: str, span: Optional[SourceSpan] = None) -> NodeDeclaration:
    """Parse ``["pub"] type Name<T0, T1, ...> ["=" "prefix"]``.

    Parameters
    ----------
    text:
        The declaration, e.g. ``'pub type ParseErrorNode<Overflow,>'``.
    span:
        Where *text* starts in its file; diagnostics are relocated onto it.

    Raises
    ------
    NodeGrammarError
        The text deviates from the grammar, or the prefix literal is invalid.
    """
    span = span or SourceSpan()
    try:
        tree = NODE_GRAMMAR.parse(text)
    except ParseError as exc:
        raise _grammar_error(text, exc, span) from exc

    decl = NodeDeclarationBuilder(text, span).visit(tree)
    logger.debug(
        "Parsed node declaration %s (%s) with %d variant(s)",
        decl.name,
        decl.visibility.value,
        len(decl.variants),
    )
    return decl
