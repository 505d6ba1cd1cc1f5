"""
hierrorchy/expander.py
======================

Whole-module expansion: find every declaration in a Python module, expand
each one and splice the generated code in its place.

Recognised top-level declarations::

    @error_leaf("io fault")              # or @hierrorchy.error_leaf(...)
    class IoFault:
        pass

    error_node("pub type ParseErrorNode<Overflow, IoFault>")

Declarations are independent: one that fails is reported and left as
written, and the rest are still expanded. ``from hierrorchy import
error_leaf, error_node`` is removed from the output so the expanded module
has no dependency on this package.
"""

from __future__ import annotations

import ast as python_ast
import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from hierrorchy.codegen import GeneratedCode
from hierrorchy.config import DEFAULT_CONFIG, EmitConfig
from hierrorchy.errors import (
    DeclarationError,
    ErrorCodes,
    ErrorMessage,
    ErrorReporter,
    ExpansionError,
    MessageSyntaxError,
    NodeGrammarError,
    SourceSpan,
)
from hierrorchy.leaf import LEAF_MARKER, expand_leaf, is_leaf_marker
from hierrorchy.node import NODE_MARKER, expand_node

logger = logging.getLogger(__name__)

__all__ = ["ExpansionResult", "expand_source"]

PACKAGE_NAME = "hierrorchy"

_QUOTE_PREFIX = re.compile(r"^[rRuU]?(\"\"\"|'''|\"|')")

# (first line index, end line index, replacement lines); half-open, 0-based
Replacement = Tuple[int, int, List[str]]


@dataclass
class ExpansionResult:
    """Outcome of expanding one module."""

    code: str
    diagnostics: List[ErrorMessage] = field(default_factory=list)
    leaves: List[str] = field(default_factory=list)
    nodes: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not any(d.severity is not None and d.severity.is_error() for d in self.diagnostics)


# ═══════════════════════════════════════════════════════════════════════════
# DECLARATION DISCOVERY
# ═══════════════════════════════════════════════════════════════════════════

def _leaf_marker(stmt: python_ast.stmt) -> Optional[python_ast.Call]:
    if not isinstance(stmt, python_ast.ClassDef):
        return None
    for decorator in stmt.decorator_list:
        if is_leaf_marker(decorator):
            return decorator
    return None


def _node_marker(stmt: python_ast.stmt) -> Optional[python_ast.Call]:
    if not isinstance(stmt, python_ast.Expr) or not isinstance(stmt.value, python_ast.Call):
        return None
    func = stmt.value.func
    if isinstance(func, python_ast.Name) and func.id == NODE_MARKER:
        return stmt.value
    if isinstance(func, python_ast.Attribute) and func.attr == NODE_MARKER:
        return stmt.value
    return None


def _is_docstring(stmt: python_ast.stmt) -> bool:
    return (
        isinstance(stmt, python_ast.Expr)
        and isinstance(stmt.value, python_ast.Constant)
        and isinstance(stmt.value.value, str)
    )


def _imports_dataclasses(body: Sequence[python_ast.stmt]) -> bool:
    for stmt in body:
        if isinstance(stmt, python_ast.Import):
            if any(a.name == "dataclasses" and a.asname is None for a in stmt.names):
                return True
    return False


def _declares_all(body: Sequence[python_ast.stmt]) -> bool:
    for stmt in body:
        targets: List[python_ast.expr] = []
        if isinstance(stmt, python_ast.Assign):
            targets = stmt.targets
        elif isinstance(stmt, (python_ast.AnnAssign, python_ast.AugAssign)):
            targets = [stmt.target]
        if any(isinstance(t, python_ast.Name) and t.id == "__all__" for t in targets):
            return True
    return False


def _import_insertion_line(body: Sequence[python_ast.stmt]) -> int:
    """Line index just after the module docstring and ``__future__`` imports."""
    line = 0
    rest = list(body)
    if rest and _is_docstring(rest[0]):
        line = rest.pop(0).end_lineno
    for stmt in rest:
        if not (isinstance(stmt, python_ast.ImportFrom) and stmt.module == "__future__"):
            break
        line = stmt.end_lineno
    return line


# ═══════════════════════════════════════════════════════════════════════════
# EXPANSION
# ═══════════════════════════════════════════════════════════════════════════

class _ModuleExpander:
    def __init__(self, source: str, filename: str, config: EmitConfig) -> None:
        self.source = source
        self.filename = filename
        self.config = config
        self.lines = source.splitlines()
        self.reporter = ErrorReporter(source)
        self.replacements: List[Replacement] = []
        self.generated: List[GeneratedCode] = []

    def span_of(self, node: python_ast.AST) -> SourceSpan:
        return SourceSpan(
            file=self.filename,
            line=node.lineno,
            column=node.col_offset + 1,
            end_line=node.end_lineno or node.lineno,
            end_column=(node.end_col_offset or node.col_offset) + 1,
        )

    def splice(self, stmt: python_ast.stmt, first_line: int, generated: GeneratedCode) -> None:
        indent = " " * stmt.col_offset
        new_lines = [indent + line if line else line for line in generated.code.splitlines()]
        self.replacements.append((first_line - 1, stmt.end_lineno, new_lines))
        self.generated.append(generated)
        logger.debug(
            "Spliced %s %s over lines %d-%d",
            generated.kind,
            generated.name,
            first_line,
            stmt.end_lineno,
        )

    def check_own_lines(self, stmt: python_ast.stmt, what: str) -> None:
        """Reject a declaration that shares a physical line with other code."""
        first = self.lines[stmt.lineno - 1].encode("utf-8")
        last = self.lines[stmt.end_lineno - 1].encode("utf-8")
        before = first[: stmt.col_offset].decode("utf-8")
        after = last[stmt.end_col_offset :].decode("utf-8").lstrip().lstrip(";").strip()
        if before.strip() or (after and not after.startswith("#")):
            raise DeclarationError(
                f"{what} shares a line with other statements",
                code=ErrorCodes.SHARED_LINE,
                span=self.span_of(stmt),
                hint="Move the other statements onto lines of their own",
            )

    def fail(self, error: DeclarationError, what: str) -> None:
        self.reporter.report(error)
        logger.warning("Skipping %s: %s", what, error.message)

    # ─────────────────────────────────────────────────────────────
    # Leaves
    # ─────────────────────────────────────────────────────────────

    def expand_leaf(self, stmt: python_ast.ClassDef, marker: python_ast.Call) -> None:
        try:
            self.check_own_lines(stmt, f"{LEAF_MARKER} class {stmt.name}")
            if len(marker.args) != 1 or marker.keywords:
                raise MessageSyntaxError(
                    f"{LEAF_MARKER} takes exactly one message argument, "
                    f"got {len(marker.args) + len(marker.keywords)}",
                    span=self.span_of(marker),
                )
            argument = marker.args[0]
            payload = python_ast.get_source_segment(self.source, argument) or ""
            first_line = min(d.lineno for d in stmt.decorator_list)
            item_source = "\n".join(self.lines[first_line - 1 : stmt.end_lineno])
            generated = expand_leaf(
                payload,
                item_source,
                span=self.span_of(stmt),
                config=self.config,
                payload_span=self.span_of(argument),
            )
        except DeclarationError as exc:
            self.fail(exc, f"leaf {stmt.name}")
            return
        self.splice(stmt, first_line, generated)

    # ─────────────────────────────────────────────────────────────
    # Nodes
    # ─────────────────────────────────────────────────────────────

    def text_span(self, literal: python_ast.expr) -> SourceSpan:
        """Span of the first character inside a string literal."""
        segment = python_ast.get_source_segment(self.source, literal) or ""
        match = _QUOTE_PREFIX.match(segment)
        skip = len(match.group(0)) if match else 0
        return SourceSpan(
            file=self.filename,
            line=literal.lineno,
            column=literal.col_offset + 1 + skip,
        )

    def expand_node(self, stmt: python_ast.Expr, marker: python_ast.Call) -> None:
        try:
            if (
                len(marker.args) != 1
                or marker.keywords
                or not isinstance(marker.args[0], python_ast.Constant)
                or not isinstance(marker.args[0].value, str)
            ):
                raise NodeGrammarError(
                    f"{NODE_MARKER} takes a single string literal",
                    span=self.span_of(marker),
                    expected=["string literal"],
                )
            self.check_own_lines(stmt, f"{NODE_MARKER} declaration")
            literal = marker.args[0]
            generated = expand_node(literal.value, self.text_span(literal), self.config)
        except DeclarationError as exc:
            self.fail(exc, "node declaration")
            return
        self.splice(stmt, stmt.lineno, generated)

    # ─────────────────────────────────────────────────────────────
    # Marker imports
    # ─────────────────────────────────────────────────────────────

    def strip_marker_import(self, stmt: python_ast.ImportFrom) -> None:
        markers = (LEAF_MARKER, NODE_MARKER)
        kept = [alias for alias in stmt.names if alias.name not in markers]
        if len(kept) == len(stmt.names):
            return
        new_lines: List[str] = []
        if kept:
            names = ", ".join(
                f"{a.name} as {a.asname}" if a.asname else a.name for a in kept
            )
            new_lines.append(f"{' ' * stmt.col_offset}from {PACKAGE_NAME} import {names}")
        self.replacements.append((stmt.lineno - 1, stmt.end_lineno, new_lines))

    # ─────────────────────────────────────────────────────────────
    # Driver
    # ─────────────────────────────────────────────────────────────

    def run(self) -> ExpansionResult:
        try:
            tree = python_ast.parse(self.source, filename=self.filename)
        except SyntaxError as exc:
            raise ExpansionError(
                f"Cannot expand {self.filename}: {exc.msg}",
                span=SourceSpan(self.filename, exc.lineno or 0, exc.offset or 0),
            ) from exc

        for stmt in tree.body:
            leaf = _leaf_marker(stmt)
            if leaf is not None:
                self.expand_leaf(stmt, leaf)
                continue
            node = _node_marker(stmt)
            if node is not None:
                self.expand_node(stmt, node)
                continue
            if isinstance(stmt, python_ast.ImportFrom) and stmt.module == PACKAGE_NAME:
                self.strip_marker_import(stmt)

        needs_dataclasses = any("dataclasses" in g.imports for g in self.generated)
        if needs_dataclasses and not _imports_dataclasses(tree.body):
            at = _import_insertion_line(tree.body)
            lines = ["", "import dataclasses"] if at else ["import dataclasses", ""]
            self.replacements.append((at, at, lines))

        exports = [name for g in self.generated for name in g.exports]
        if exports and _declares_all(tree.body):
            end = len(self.lines)
            self.replacements.append((end, end, ["", f"__all__ += {exports!r}"]))

        out = list(self.lines)
        for start, end, new_lines in sorted(
            self.replacements, key=lambda r: (r[0], r[1]), reverse=True
        ):
            out[start:end] = new_lines
        code = "\n".join(out)
        if code and not code.endswith("\n"):
            code += "\n"

        result = ExpansionResult(
            code=code,
            diagnostics=self.reporter.messages,
            leaves=[g.name for g in self.generated if g.kind == "leaf"],
            nodes=[g.name for g in self.generated if g.kind == "node"],
        )
        logger.info(
            "Expanded %s: %d leaf(s), %d node(s), %d diagnostic(s)",
            self.filename,
            len(result.leaves),
            len(result.nodes),
            len(result.diagnostics),
        )
        return result


def expand_source(
    source: str,
    filename: str = "<string>",
    config: Optional[EmitConfig] = None,
) -> ExpansionResult:
    """Expand every top-level leaf and node declaration in *source*.

    Raises
    ------
    ExpansionError
        *source* is not valid Python.
    """
    return _ModuleExpander(source, filename, config or DEFAULT_CONFIG).run()
