"""
hierrorchy/leaf.py
==================

Leaf errors: a class plus a message becomes a terminal error type.

Given::

    @error_leaf("{} is wrong".format(self.field))
    class BadField:
        field: str

the emitter produces::

    @dataclasses.dataclass(eq=False)
    class BadField(Exception):
        field: str

        def render(self) -> str:
            return str("{} is wrong".format(self.field))

        def cause(self) -> None:
            return None

        def __str__(self) -> str:
            return self.render()

The class body is carried through verbatim. A literal message is rendered
exactly; a template is evaluated against ``self`` each time ``render()`` runs.
"""

from __future__ import annotations

import ast as python_ast
import logging
import re
import textwrap
from typing import List, Optional, Set, Tuple

from hierrorchy.codegen import CodeEmitter, GeneratedCode
from hierrorchy.config import DEFAULT_CONFIG, EmitConfig
from hierrorchy.errors import LeafDeclarationError, SourceSpan
from hierrorchy.message import MessageSpec, resolve_message
from hierrorchy.model import LeafDeclaration

logger = logging.getLogger(__name__)

__all__ = ["LEAF_MARKER", "is_leaf_marker", "parse_leaf", "emit_leaf", "expand_leaf"]

LEAF_MARKER = "error_leaf"


def _callee_name(func: python_ast.expr) -> Optional[str]:
    if isinstance(func, python_ast.Name):
        return func.id
    if isinstance(func, python_ast.Attribute):
        return func.attr
    return None


def is_leaf_marker(decorator: python_ast.expr) -> bool:
    """True for ``@error_leaf(...)`` and ``@<module>.error_leaf(...)``."""
    return (
        isinstance(decorator, python_ast.Call)
        and _callee_name(decorator.func) == LEAF_MARKER
    )


def _is_dataclass_decorator(decorator: python_ast.expr) -> bool:
    target = decorator.func if isinstance(decorator, python_ast.Call) else decorator
    return _callee_name(target) == "dataclass"


def _split_at(line: str, col_offset: int) -> Tuple[str, str]:
    # ast column offsets count UTF-8 bytes
    raw = line.encode("utf-8")
    return raw[:col_offset].decode("utf-8"), raw[col_offset:].decode("utf-8")


def _leading_ws(line: str) -> str:
    return line[: len(line) - len(line.lstrip())]


# ═══════════════════════════════════════════════════════════════════════════
# PARSING
# ═══════════════════════════════════════════════════════════════════════════

def parse_leaf(
    item_source: str,
    message: MessageSpec,
    span: Optional[SourceSpan] = None,
    config: Optional[EmitConfig] = None,
) -> LeafDeclaration:
    """Split a class definition into the parts the leaf emitter rewrites.

    *item_source* is the decorated class. Any ``error_leaf`` decorator still
    present is dropped; other decorators are kept in order.

    Raises
    ------
    LeafDeclarationError
        *item_source* is not exactly one class definition.
    """
    span = span or SourceSpan()
    config = config or DEFAULT_CONFIG
    source = textwrap.dedent(item_source)

    try:
        tree = python_ast.parse(source)
    except SyntaxError as exc:
        raise LeafDeclarationError(
            f"error_leaf item is not valid Python: {exc.msg}",
            span=span,
        ) from exc

    if len(tree.body) != 1 or not isinstance(tree.body[0], python_ast.ClassDef):
        found = type(tree.body[0]).__name__ if tree.body else "nothing"
        raise LeafDeclarationError(
            f"error_leaf must decorate a single class definition, found {found}",
            span=span,
        )

    cls = tree.body[0]
    lines = source.split("\n")

    marker_lines: Set[int] = set()
    for decorator in cls.decorator_list:
        if is_leaf_marker(decorator):
            marker_lines.update(range(decorator.lineno, decorator.end_lineno + 1))
    decorators = [
        line
        for number, line in enumerate(lines[: cls.lineno - 1], start=1)
        if number not in marker_lines and line.strip()
    ]

    class_line = lines[cls.lineno - 1]
    first = cls.body[0]
    first_line = lines[first.lineno - 1]
    before, after = _split_at(first_line, first.col_offset)

    if before.strip():
        # One-line class: ``class Foo: pass``
        header = lines[cls.lineno - 1 : first.lineno - 1] + [before.rstrip()]
        body_indent = _leading_ws(class_line) + config.indent
        body = [body_indent + after] + lines[first.lineno : cls.end_lineno]
    else:
        header = lines[cls.lineno - 1 : first.lineno - 1]
        body_indent = before
        body = lines[first.lineno - 1 : cls.end_lineno]

    decl = LeafDeclaration(
        name=cls.name,
        message=message,
        header="\n".join(header),
        body=tuple(body),
        body_indent=body_indent,
        decorators=tuple(decorators),
        has_bases=bool(cls.bases),
        has_dataclass=any(_is_dataclass_decorator(d) for d in cls.decorator_list),
        span=span,
    )
    logger.debug(
        "Parsed leaf %s (bases=%s, dataclass=%s)",
        decl.name,
        decl.has_bases,
        decl.has_dataclass,
    )
    return decl


# ═══════════════════════════════════════════════════════════════════════════
# EMISSION
# ═══════════════════════════════════════════════════════════════════════════

def _with_base(decl: LeafDeclaration, base: str) -> str:
    head = re.compile(r"class\s+" + re.escape(decl.name) + r"\b\s*(?:\[[^\]]*\])?")
    match = head.search(decl.header)
    rest = decl.header[match.end():].lstrip() if match else ""
    empty = re.match(r"\(\s*\)\s*", rest)
    if empty:
        rest = rest[empty.end():]
    if rest.startswith(":"):
        return f"{decl.header[:match.end()]}({base}){rest}"
    if rest.startswith("("):
        # keyword arguments only, e.g. ``(metaclass=Meta)``
        return f"{decl.header[:match.end()]}({base}, {rest[1:].lstrip()}"
    raise LeafDeclarationError(
        f"Cannot add base class {base} to the header of {decl.name}",
        span=decl.span,
    )


def emit_leaf(decl: LeafDeclaration, config: Optional[EmitConfig] = None) -> GeneratedCode:
    """Generate the leaf class for *decl*."""
    config = config or DEFAULT_CONFIG
    class_indent = _leading_ws(decl.header.split("\n")[0])

    out: List[str] = list(decl.decorators)
    if not decl.has_dataclass:
        out.append(f"{class_indent}@dataclasses.dataclass(eq=False)")
    out.append(decl.header if decl.has_bases else _with_base(decl, config.base_exception))
    out.extend(decl.body)

    emitter = CodeEmitter(config.indent, base_indent=decl.body_indent)
    emitter.emit_blank()
    with emitter.block("def render(self) -> str:"):
        emitter.emit(f"return {decl.message.render_expression()}")
    emitter.emit_blank()
    with emitter.block("def cause(self) -> None:"):
        emitter.emit("return None")
    emitter.emit_blank()
    with emitter.block("def __str__(self) -> str:"):
        emitter.emit("return self.render()")

    code = "\n".join(out) + "\n" + emitter.get_code()
    logger.debug("Emitted leaf %s", decl.name)
    return GeneratedCode(
        name=decl.name,
        kind="leaf",
        code=code,
        imports=() if decl.has_dataclass else ("dataclasses",),
    )


def expand_leaf(
    payload: str,
    item_source: str,
    span: Optional[SourceSpan] = None,
    config: Optional[EmitConfig] = None,
    payload_span: Optional[SourceSpan] = None,
) -> GeneratedCode:
    """Resolve the message, parse the class and emit the leaf in one step."""
    message = resolve_message(payload, payload_span or span)
    decl = parse_leaf(item_source, message, span=span, config=config)
    return emit_leaf(decl, config)

