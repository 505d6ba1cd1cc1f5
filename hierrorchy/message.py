"""Leaf message payloads: a literal string or a template evaluated against ``self``.

The payload is the argument of ``@error_leaf(...)``::

    @error_leaf("io fault")                                  # LiteralMessage
    @error_leaf("{} is wrong".format(self.field))            # TemplateMessage
    @error_leaf(f"value is {self.value}")                    # TemplateMessage

Templates are kept as source text; they are only evaluated by the generated
``render()`` method, once the instance and all its fields exist.
"""

from __future__ import annotations

import ast as python_ast
import logging
from dataclasses import dataclass
from typing import Optional, Union

from hierrorchy.errors import ErrorCodes, MessageSyntaxError, SourceSpan

logger = logging.getLogger(__name__)

__all__ = [
    "LiteralMessage",
    "TemplateMessage",
    "MessageSpec",
    "resolve_message",
]


@dataclass(frozen=True)
class LiteralMessage:
    """Message rendered exactly as written."""

    text: str

    def render_expression(self) -> str:
        return repr(self.text)


@dataclass(frozen=True)
class TemplateMessage:
    """Message computed by a Python expression that may reference ``self``."""

    expression: str

    def render_expression(self) -> str:
        return f"str({self.expression})"


MessageSpec = Union[LiteralMessage, TemplateMessage]


def _describe(node: python_ast.AST) -> str:
    if isinstance(node, python_ast.Constant):
        return f"{type(node.value).__name__} literal"
    return type(node).__name__.lower()


def resolve_message(payload: str, span: Optional[SourceSpan] = None) -> MessageSpec:
    """Resolve the payload of ``@error_leaf`` into a :data:`MessageSpec`.

    Parameters
    ----------
    payload:
        Source text of the decorator argument.
    span:
        Location of *payload* in its file, used for diagnostics.

    Raises
    ------
    MessageSyntaxError
        The payload is not an expression, or is an expression of any shape
        other than a string literal, a call or an f-string.
    """
    span = span or SourceSpan()
    text = payload.strip()
    if not text:
        raise MessageSyntaxError("error_leaf requires a message", span=span)

    # Parenthesized so that implicit concatenation may span several lines.
    try:
        expr = python_ast.parse(f"({text})", mode="eval").body
    except SyntaxError as exc:
        line = (exc.lineno or 1) - 1
        column = (exc.offset or 1) - (2 if line == 0 else 1)
        pos = sum(len(part) + 1 for part in text.split("\n")[:line]) + max(column, 0)
        raise MessageSyntaxError(
            f"Invalid leaf message: {exc.msg}",
            code=ErrorCodes.MESSAGE_SYNTAX,
            span=span.offset(text, min(pos, len(text))),
            got=text,
        ) from exc

    if isinstance(expr, python_ast.Constant) and isinstance(expr.value, str):
        logger.debug("Resolved literal leaf message %r", expr.value)
        return LiteralMessage(expr.value)
    if isinstance(expr, (python_ast.Call, python_ast.JoinedStr)):
        logger.debug("Resolved template leaf message %s", text)
        return TemplateMessage(text)

    raise MessageSyntaxError(
        f"Leaf message must be a string literal or a formatting call, got {_describe(expr)}",
        span=span,
        got=text,
    )
