"""
hierrorchy/codegen.py
=====================

Low-level helpers shared by the leaf and node emitters.

* :class:`CodeEmitter`: line-oriented Python source builder with
  indentation tracking and block context managers.
* :class:`GeneratedCode`: the text produced for one declaration plus the
  imports it needs and the names it exports.
* :func:`snake_case` for factory names.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from io import StringIO
from typing import Any, Tuple

__all__ = [
    "CodeEmitter",
    "GeneratedCode",
    "snake_case",
]


# ═══════════════════════════════════════════════════════════════════════════
# CODE EMITTER
# ═══════════════════════════════════════════════════════════════════════════

class CodeEmitter:
    """Low-level code emission with indentation management.

    Provides a structured way to emit Python code with:
    - Automatic indentation tracking
    - Block context managers
    - String literal escaping
    """

    def __init__(self, indent_str: str = "    ", base_indent: str = "") -> None:
        self._buffer = StringIO()
        self._indent_str = indent_str
        self._base_indent = base_indent
        self._indent_level = 0

    def emit(self, code: str) -> None:
        """Emit a line of code at the current indentation."""
        if code.strip():
            self._buffer.write(self._base_indent)
            self._buffer.write(self._indent_str * self._indent_level)
            self._buffer.write(code)
        self._buffer.write("\n")

    def emit_blank(self, count: int = 1) -> None:
        for _ in range(count):
            self._buffer.write("\n")

    def emit_docstring(self, text: str) -> None:
        lines = text.strip().split("\n")
        if len(lines) == 1:
            self.emit(f'"""{lines[0]}"""')
        else:
            self.emit('"""')
            for line in lines:
                self.emit(line)
            self.emit('"""')

    def indent(self) -> None:
        self._indent_level += 1

    def dedent(self) -> None:
        self._indent_level = max(0, self._indent_level - 1)

    def block(self, header: str) -> "CodeEmitter._BlockContext":
        """Context manager for indented blocks."""
        return self._BlockContext(self, header)

    class _BlockContext:
        """Context manager for code blocks."""

        def __init__(self, emitter: "CodeEmitter", header: str) -> None:
            self._emitter = emitter
            self._header = header

        def __enter__(self) -> "CodeEmitter":
            self._emitter.emit(self._header)
            self._emitter.indent()
            return self._emitter

        def __exit__(self, *args: Any) -> None:
            self._emitter.dedent()

    def get_code(self) -> str:
        return self._buffer.getvalue()

    @staticmethod
    def escape_string(s: str) -> str:
        """Escape a string for Python code."""
        return repr(s)


# ═══════════════════════════════════════════════════════════════════════════
# GENERATED CODE CONTAINER
# ═══════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class GeneratedCode:
    """Code generated for one declaration."""

    name: str
    kind: str                                   # "leaf" or "node"
    code: str
    imports: Tuple[str, ...] = ()               # modules the code refers to
    exports: Tuple[str, ...] = field(default_factory=tuple)

    def with_imports(self) -> str:
        """The generated code preceded by its import statements."""
        header = "".join(f"import {name}\n" for name in self.imports)
        if header:
            header += "\n\n"
        return header + self.code

    def __str__(self) -> str:
        return self.code


# ═══════════════════════════════════════════════════════════════════════════
# NAMING
# ═══════════════════════════════════════════════════════════════════════════

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


def snake_case(name: str) -> str:
    """``IoFault`` -> ``io_fault``, ``errors.HTTPError`` -> ``errors_http_error``."""
    parts = [_CAMEL_BOUNDARY.sub("_", part).lower() for part in name.split(".")]
    return "_".join(p.strip("_") for p in parts if p)

