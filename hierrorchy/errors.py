# hierrorchy/errors.py
"""
Diagnostics for the hierrorchy generator.

Every failure raised while expanding a declaration is a generation-time
diagnostic: it carries a structured :class:`ErrorCode`, the
:class:`SourceSpan` of the offending text and optional notes and hint, and
it aborts only the declaration being expanded.

Error Hierarchy:
────────────────
┌─────────────────────────────────────────────────────────────────────────┐
│  HierrorchyError (base)                                                 │
│  ├── DeclarationError          - aborts a single leaf or node           │
│  │   ├── MessageSyntaxError    - leaf payload has the wrong shape       │
│  │   ├── LeafDeclarationError  - decorated item is not a single class   │
│  │   ├── NodeGrammarError      - node declaration violates the grammar  │
│  │   └── NodeModelError        - node is grammatical but unsound        │
│  │       ├── EmptyNodeError                                             │
│  │       └── DuplicateVariantError                                      │
│  └── ExpansionError            - the host module itself is unusable     │
└─────────────────────────────────────────────────────────────────────────┘

Error Codes:
────────────
HIER-NNNN where NNNN is in the ranges:
  - 1000-1099: Leaf syntax errors
  - 1100-1199: Node syntax errors
  - 2000-2999: Node model errors
  - 3000-3999: Module expansion errors
  - 9000-9999: Internal errors
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum, unique
from typing import Any, Dict, Iterator, List, Optional, Sequence


# ═══════════════════════════════════════════════════════════════════════════════
# SEVERITY AND PHASE
# ═══════════════════════════════════════════════════════════════════════════════

@unique
class ErrorSeverity(Enum):
    """Severity levels for generator diagnostics."""

    ERROR = "error"
    WARNING = "warning"
    NOTE = "note"

    def is_error(self) -> bool:
        return self is ErrorSeverity.ERROR


@unique
class ErrorPhase(Enum):
    """Generator phase where the error occurred."""

    PARSE = "parse"        # MessageSpec resolution, node grammar
    MODEL = "model"        # Node model building
    EMIT = "emit"          # Code emission
    EXPAND = "expand"      # Module scanning and splicing
    INTERNAL = "internal"


# ═══════════════════════════════════════════════════════════════════════════════
# ERROR CODES
# ═══════════════════════════════════════════════════════════════════════════════

class ErrorCode:
    """
    Structured error code of the form ``HIER-NNNN``.
    """

    __slots__ = ("prefix", "number", "phase", "summary", "default_severity")

    def __init__(
        self,
        number: int,
        phase: ErrorPhase,
        summary: str,
        default_severity: ErrorSeverity = ErrorSeverity.ERROR,
        prefix: str = "HIER",
    ) -> None:
        self.prefix = prefix
        self.number = number
        self.phase = phase
        self.summary = summary
        self.default_severity = default_severity

    @property
    def code(self) -> str:
        """Get the full error code string."""
        return f"{self.prefix}-{self.number:04d}"

    def __str__(self) -> str:
        return self.code

    def __repr__(self) -> str:
        return f"ErrorCode({self.code!r}, {self.phase.value})"

    def __hash__(self) -> int:
        return hash((self.prefix, self.number))

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ErrorCode):
            return self.prefix == other.prefix and self.number == other.number
        if isinstance(other, str):
            return self.code == other
        return False


class ErrorCodes:
    """Predefined error codes."""

    # Leaf syntax (1000-1099)
    MESSAGE_SHAPE = ErrorCode(
        1001, ErrorPhase.PARSE,
        "leaf message must be a string literal or a formatting call",
    )
    MESSAGE_SYNTAX = ErrorCode(
        1002, ErrorPhase.PARSE, "leaf message is not a valid expression",
    )
    LEAF_ITEM = ErrorCode(
        1003, ErrorPhase.PARSE, "error_leaf must decorate a single class",
    )

    # Node syntax (1100-1199)
    NODE_GRAMMAR = ErrorCode(
        1101, ErrorPhase.PARSE, "node declaration does not match the node grammar",
    )
    NODE_STRING = ErrorCode(
        1102, ErrorPhase.PARSE, "invalid string literal in node declaration",
    )

    # Node model (2000-2999)
    EMPTY_NODE = ErrorCode(
        2001, ErrorPhase.EMIT, "node declares no variants",
    )
    DUPLICATE_VARIANT = ErrorCode(
        2002, ErrorPhase.MODEL, "node declares the same child type twice",
    )

    # Module expansion (3000-3999)
    MODULE_SYNTAX = ErrorCode(
        3001, ErrorPhase.EXPAND, "module is not valid Python",
    )
    SHARED_LINE = ErrorCode(
        3002, ErrorPhase.EXPAND, "declaration shares a line with other statements",
    )

    # Internal (9000-9999)
    INTERNAL_ERROR = ErrorCode(
        9001, ErrorPhase.INTERNAL, "internal generator error",
    )


# ═══════════════════════════════════════════════════════════════════════════════
# SOURCE LOCATIONS
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class SourceSpan:
    """
    A span of source text. Lines and columns are 1-based; ``0`` means unknown.
    """

    file: str = ""
    line: int = 0
    column: int = 0
    end_line: int = 0
    end_column: int = 0

    def __post_init__(self) -> None:
        # Normalize: if end not specified, use start
        if self.end_line == 0:
            object.__setattr__(self, "end_line", self.line)
        if self.end_column == 0:
            object.__setattr__(self, "end_column", self.column)

    def offset(self, text: str, pos: int) -> "SourceSpan":
        """Return the span of character *pos* of *text*, where *text* starts at this span.

        Used to relocate positions reported inside a declaration string onto
        the file the declaration was found in.
        """
        before = text[:pos]
        line_delta = before.count("\n")
        if line_delta:
            column = pos - before.rfind("\n")
        else:
            column = max(self.column, 1) + pos
        return SourceSpan(
            file=self.file,
            line=max(self.line, 1) + line_delta,
            column=column,
        )

    def __str__(self) -> str:
        if not self.file and self.line == 0:
            return "<unknown location>"

        parts = []
        if self.file:
            parts.append(self.file)
        if self.line > 0:
            parts.append(str(self.line))
            if self.column > 0:
                parts.append(str(self.column))

        return ":".join(parts)


# ═══════════════════════════════════════════════════════════════════════════════
# ERROR MESSAGE FORMATTING
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass
class ErrorNote:
    """Additional note attached to an error."""

    message: str
    span: Optional[SourceSpan] = None
    label: str = "note"

    def __str__(self) -> str:
        prefix = f"{self.label}: " if self.label else ""
        if self.span:
            return f"{self.span}: {prefix}{self.message}"
        return f"{prefix}{self.message}"


@dataclass
class ErrorMessage:
    """
    A complete diagnostic before it is printed.
    """

    code: ErrorCode
    message: str
    span: SourceSpan = field(default_factory=SourceSpan)
    severity: Optional[ErrorSeverity] = None  # None means use code's default
    notes: List[ErrorNote] = field(default_factory=list)
    hint: str = ""
    source_line: str = ""

    def __post_init__(self) -> None:
        if self.severity is None:
            self.severity = self.code.default_severity

    def add_note(
        self,
        message: str,
        span: Optional[SourceSpan] = None,
        label: str = "note",
    ) -> "ErrorMessage":
        self.notes.append(ErrorNote(message=message, span=span, label=label))
        return self

    def with_hint(self, hint: str) -> "ErrorMessage":
        self.hint = hint
        return self

    def with_source(self, line: str) -> "ErrorMessage":
        self.source_line = line
        return self

    def to_gcc_format(self) -> str:
        """Format as a GCC-style error message."""
        severity = self.severity.value if self.severity else "error"
        lines = [f"{self.span}: {severity}: {self.message} [{self.code}]"]

        # Source line with caret
        if self.source_line:
            lines.append(f"    {self.source_line}")
            if self.span.column > 0:
                caret_pos = self.span.column - 1
                caret_len = max(1, self.span.end_column - self.span.column)
                lines.append(f"    {' ' * caret_pos}{'^' * caret_len}")

        for note in self.notes:
            lines.append(str(note))

        if self.hint:
            lines.append(f"hint: {self.hint}")

        return "\n".join(lines)

    def to_json(self) -> Dict[str, Any]:
        """Convert to a JSON-serializable dict."""
        return {
            "code": self.code.code,
            "message": self.message,
            "severity": self.severity.value if self.severity else "error",
            "phase": self.code.phase.value,
            "location": {
                "file": self.span.file,
                "line": self.span.line,
                "column": self.span.column,
                "end_line": self.span.end_line,
                "end_column": self.span.end_column,
            },
            "notes": [
                {
                    "message": note.message,
                    "label": note.label,
                    "location": str(note.span) if note.span else None,
                }
                for note in self.notes
            ],
            "hint": self.hint,
        }

    def __str__(self) -> str:
        return self.to_gcc_format()


# ═══════════════════════════════════════════════════════════════════════════════
# EXCEPTION CLASSES
# ═══════════════════════════════════════════════════════════════════════════════

class HierrorchyError(Exception):
    """
    Base exception for all generator errors.

    Carries a structured :class:`ErrorMessage` that can be pretty-printed
    or serialized.
    """

    default_code: ErrorCode = ErrorCodes.INTERNAL_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[ErrorCode] = None,
        span: Optional[SourceSpan] = None,
        notes: Optional[List[ErrorNote]] = None,
        hint: str = "",
    ) -> None:
        super().__init__(message)
        self.error_message = ErrorMessage(
            code=code or self.default_code,
            message=message,
            span=span or SourceSpan(),
            notes=notes or [],
            hint=hint,
        )

    @property
    def code(self) -> ErrorCode:
        return self.error_message.code

    @property
    def span(self) -> SourceSpan:
        return self.error_message.span

    @property
    def message(self) -> str:
        return self.error_message.message

    def add_note(
        self,
        message: str,
        span: Optional[SourceSpan] = None,
        label: str = "note",
    ) -> "HierrorchyError":
        self.error_message.add_note(message, span, label)
        return self

    def with_hint(self, hint: str) -> "HierrorchyError":
        self.error_message.with_hint(hint)
        return self

    def to_gcc_format(self) -> str:
        return self.error_message.to_gcc_format()

    def __str__(self) -> str:
        return self.to_gcc_format()


class DeclarationError(HierrorchyError):
    """Error that aborts the expansion of a single declaration."""


class MessageSyntaxError(DeclarationError):
    """Leaf message payload is neither a string literal nor a template call."""

    default_code = ErrorCodes.MESSAGE_SHAPE

    def __init__(self, message: str, got: str = "", **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.got = got
        if not self.error_message.hint:
            self.error_message.hint = (
                'Expected a string literal such as "io fault" or a call such as '
                '"{} is wrong".format(self.field)'
            )


class LeafDeclarationError(DeclarationError):
    """The item decorated with error_leaf is not a single class definition."""

    default_code = ErrorCodes.LEAF_ITEM


class NodeGrammarError(DeclarationError):
    """Node declaration does not match ``["pub"] type Name<T, ...> ["=" "prefix"]``."""

    default_code = ErrorCodes.NODE_GRAMMAR

    def __init__(
        self,
        message: str,
        expected: Optional[Sequence[str]] = None,
        got: str = "",
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.expected = list(expected) if expected else []
        self.got = got


class NodeModelError(DeclarationError):
    """Node declaration parses but cannot be turned into sound code."""


class EmptyNodeError(NodeModelError):
    """Node has no variants, so it could never report a cause."""

    default_code = ErrorCodes.EMPTY_NODE

    def __init__(self, node_name: str, **kwargs: Any) -> None:
        super().__init__(
            f"Error node {node_name!r} declares no variants",
            hint="List at least one child error type between '<' and '>'",
            **kwargs,
        )
        self.node_name = node_name


class DuplicateVariantError(NodeModelError):
    """Two variants would produce the same conversion factory."""

    default_code = ErrorCodes.DUPLICATE_VARIANT

    def __init__(
        self,
        node_name: str,
        type_ref: str,
        first_index: int,
        second_index: int,
        first_ref: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        first_ref = first_ref or type_ref
        if first_ref == type_ref:
            message = f"Error node {node_name!r} lists {type_ref!r} more than once"
        else:
            message = (
                f"Error node {node_name!r} lists {first_ref!r} and {type_ref!r}, "
                f"which derive the same factory name"
            )
        super().__init__(
            f"{message} (variants {first_index} and {second_index})",
            **kwargs,
        )
        self.first_ref = first_ref
        self.node_name = node_name
        self.type_ref = type_ref


class ExpansionError(HierrorchyError):
    """The module being expanded cannot be processed at all."""

    default_code = ErrorCodes.MODULE_SYNTAX


# ═══════════════════════════════════════════════════════════════════════════════
# REPORTER
# ═══════════════════════════════════════════════════════════════════════════════

class ErrorReporter:
    """
    Collects diagnostics while expanding one module.

    Example::

        reporter = ErrorReporter(source=text)
        try:
            ...
        except DeclarationError as exc:
            reporter.report(exc)
        if reporter.has_errors():
            print(reporter.format())
    """

    def __init__(self, source: str = "") -> None:
        self._lines = source.splitlines()
        self._messages: List[ErrorMessage] = []

    def report(self, error: HierrorchyError) -> ErrorMessage:
        """Record *error*, attaching the source line it points at."""
        message = error.error_message
        line = message.span.line
        if not message.source_line and 0 < line <= len(self._lines):
            message.with_source(self._lines[line - 1])
        self._messages.append(message)
        return message

    @property
    def messages(self) -> List[ErrorMessage]:
        return list(self._messages)

    def __iter__(self) -> Iterator[ErrorMessage]:
        return iter(self._messages)

    def __len__(self) -> int:
        return len(self._messages)

    def has_errors(self) -> bool:
        return any(m.severity is not None and m.severity.is_error() for m in self._messages)

    def format(self, fmt: str = "gcc") -> str:
        """Render all diagnostics as GCC-style text or JSON lines."""
        if fmt == "json":
            return "\n".join(json.dumps(m.to_json()) for m in self._messages)
        return "\n".join(m.to_gcc_format() for m in self._messages)
