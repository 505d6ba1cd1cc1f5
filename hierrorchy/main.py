#!/usr/bin/env python3
"""hierrorchy/main.py: CLI entry-point for the hierrorchy generator.

Usage examples
--------------
    # Expand every declaration in a module and print the result
    python -m hierrorchy expand errors_template.py

    # Expand into a file
    python -m hierrorchy expand errors_template.py -o errors.py

    # Show the code generated for a single node declaration
    python -m hierrorchy node 'pub type ParseErrorNode<Overflow, IoFault>'

    # Show the parsed node model (debugging aid)
    python -m hierrorchy parse 'type High<LowNode> = "high"' --format json

    # Show version and exit
    python -m hierrorchy --version

Exit codes
----------
    0   Success.
    1   One or more declarations could not be expanded.
    2   Infrastructure failure (missing file, module is not valid Python, etc.).

The module doubles as ``python -m hierrorchy`` via the companion
``hierrorchy/__main__.py`` which simply calls :func:`main`.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import textwrap
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, TextIO

from hierrorchy import __version__
from hierrorchy.config import EmitConfig
from hierrorchy.errors import (
    DeclarationError,
    ErrorMessage,
    ErrorReporter,
    ExpansionError,
)
from hierrorchy.expander import expand_source
from hierrorchy.model import NodeModel, build_node_model
from hierrorchy.node import emit_node
from hierrorchy.parser import parse_node_declaration

_log = logging.getLogger("hierrorchy")

# Exit codes ----------------------------------------------------------------

EXIT_OK: int = 0
EXIT_ERROR: int = 1
EXIT_INFRA: int = 2


# ===========================================================================
# Utility helpers
# ===========================================================================

def _configure_logging(verbosity: int) -> None:
    """Set up the ``hierrorchy`` logger.

    Parameters
    ----------
    verbosity:
        0 → WARNING, 1 → INFO, 2+ → DEBUG.
    """
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s [%(levelname)-5.5s] %(name)s: %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    root = logging.getLogger("hierrorchy")
    root.setLevel(level)
    # main() may run several times in one process (tests, embedding).
    root.handlers = [handler]


def _resolve_path(raw: str, label: str = "file") -> Path:
    """Resolve *raw* to an absolute ``Path``, raising on missing files."""
    p = Path(raw).expanduser().resolve()
    if not p.is_file():
        _log.error("%s not found: %s", label, p)
        raise SystemExit(EXIT_INFRA)
    return p


def _open_output(dest: Optional[str]) -> TextIO:
    """Return a writable text stream.

    *dest* ``None`` or ``"-"`` → ``sys.stdout``; otherwise open the path
    for writing (creating parent directories as needed).
    """
    if dest is None or dest == "-":
        return sys.stdout
    p = Path(dest).expanduser().resolve()
    p.parent.mkdir(parents=True, exist_ok=True)
    return open(p, "w", encoding="utf-8")


def _emit_diagnostics(diagnostics: List[ErrorMessage], fmt: str, stream: TextIO) -> int:
    """Write *diagnostics* to *stream*; return the count of errors."""
    error_count = 0
    for diag in diagnostics:
        if diag.severity is not None and diag.severity.is_error():
            error_count += 1
        if fmt == "json":
            stream.write(json.dumps(diag.to_json()) + "\n")
        else:
            stream.write(diag.to_gcc_format() + "\n")
    return error_count


def _report_one(error: DeclarationError, text: str, fmt: str) -> int:
    reporter = ErrorReporter(source=text)
    reporter.report(error)
    _emit_diagnostics(reporter.messages, fmt, sys.stderr)
    return EXIT_ERROR


def _model_to_dict(model: NodeModel) -> Dict[str, Any]:
    return {
        "name": model.name,
        "visibility": model.visibility.value,
        "message_prefix": model.message_prefix,
        "variants": [
            {
                "tag": v.tag,
                "type": str(v.type_ref),
                "factory": v.factory,
            }
            for v in model.variants
        ],
    }


def _model_to_text(model: NodeModel) -> str:
    lines = [f"node {model.name} ({model.visibility.value})"]
    lines.append(f"  prefix: {model.prefix!r}")
    if not model.variants:
        lines.append("  <no variants>")
    for v in model.variants:
        lines.append(f"  {v.tag}: {v.type_ref} -> {model.name}.{v.factory}()")
    return "\n".join(lines)


# ===========================================================================
# Sub-command implementations
# ===========================================================================

# ---------------------------------------------------------------------------
# expand
# ---------------------------------------------------------------------------

def cmd_expand(args: argparse.Namespace) -> int:
    """Expand every leaf and node declaration of a Python module."""
    src_path = _resolve_path(args.source_file, "source file")
    config = EmitConfig.from_args(args)

    source = src_path.read_text(encoding="utf-8")
    _log.info("Expanding %s", src_path)
    try:
        result = expand_source(source, filename=args.source_file, config=config)
    except ExpansionError as exc:
        _emit_diagnostics([exc.error_message], args.diagnostics, sys.stderr)
        return EXIT_INFRA

    out = _open_output(args.output)
    try:
        out.write(result.code)
    finally:
        if out is not sys.stdout:
            out.close()

    error_count = _emit_diagnostics(result.diagnostics, args.diagnostics, sys.stderr)
    return EXIT_ERROR if error_count > 0 else EXIT_OK


# ---------------------------------------------------------------------------
# node
# ---------------------------------------------------------------------------

def cmd_node(args: argparse.Namespace) -> int:
    """Print the code generated for a single node declaration."""
    config = EmitConfig.from_args(args)
    try:
        model = build_node_model(parse_node_declaration(args.declaration))
        generated = emit_node(model, config)
    except DeclarationError as exc:
        return _report_one(exc, args.declaration, args.diagnostics)

    sys.stdout.write(generated.with_imports())
    return EXIT_OK


# ---------------------------------------------------------------------------
# parse
# ---------------------------------------------------------------------------

def cmd_parse(args: argparse.Namespace) -> int:
    """Parse a node declaration and print its model."""
    try:
        model = build_node_model(parse_node_declaration(args.declaration))
    except DeclarationError as exc:
        return _report_one(exc, args.declaration, args.diagnostics)

    if args.format == "json":
        sys.stdout.write(json.dumps(_model_to_dict(model), indent=2) + "\n")
    else:
        sys.stdout.write(_model_to_text(model) + "\n")
    return EXIT_OK


# ===========================================================================
# Argument parser
# ===========================================================================

def _build_parser() -> argparse.ArgumentParser:
    """Construct the full CLI argument parser with subcommands."""

    # --- Top-level parser --------------------------------------------------
    parser = argparse.ArgumentParser(
        prog="hierrorchy",
        description=(
            "hierrorchy: generate error hierarchies.\n\n"
            "Expands @error_leaf classes and error_node(...) declarations\n"
            "into plain Python exception classes."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""\
            examples:
              hierrorchy expand errors_template.py -o errors.py
              hierrorchy node 'pub type ParseErrorNode<Overflow, IoFault>'
              hierrorchy parse 'type High<LowNode> = "high"' --format json
        """),
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (-v info, -vv debug).",
    )
    parser.add_argument(
        "--diagnostics",
        choices=["gcc", "json"],
        default="gcc",
        help="Diagnostic format on stderr (default: gcc).",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        title="commands",
        metavar="<command>",
    )

    # Shared argument groups (reusable) ------------------------------------

    def _add_emit_args(p: argparse.ArgumentParser) -> None:
        g = p.add_argument_group("code generation")
        g.add_argument(
            "--indent",
            type=int,
            default=None,
            metavar="N",
            help="Spaces per indentation level in generated code (default: 4).",
        )
        g.add_argument(
            "--base-exception",
            default=None,
            metavar="NAME",
            help="Base class for nodes and base-less leaves (default: Exception).",
        )
        g.add_argument(
            "--no-seal",
            action="store_true",
            help="Do not guard nodes against new subclasses.",
        )

    # --- expand ------------------------------------------------------------
    p_expand = subparsers.add_parser(
        "expand",
        help="Expand all declarations in a Python module.",
    )
    p_expand.add_argument(
        "source_file",
        metavar="FILE",
        help="Python module containing error_leaf / error_node declarations.",
    )
    p_expand.add_argument(
        "-o", "--output",
        default=None,
        metavar="FILE",
        help='Output file ("-" or omit for stdout).',
    )
    _add_emit_args(p_expand)
    p_expand.set_defaults(func=cmd_expand)

    # --- node --------------------------------------------------------------
    p_node = subparsers.add_parser(
        "node",
        help="Print the code generated for one node declaration.",
    )
    p_node.add_argument(
        "declaration",
        metavar="DECL",
        help="Node declaration, e.g. 'pub type Name<A, B> = \"prefix\"'.",
    )
    _add_emit_args(p_node)
    p_node.set_defaults(func=cmd_node)

    # --- parse -------------------------------------------------------------
    p_parse = subparsers.add_parser(
        "parse",
        help="Parse a node declaration and print its model.",
    )
    p_parse.add_argument(
        "declaration",
        metavar="DECL",
        help="Node declaration to parse.",
    )
    p_parse.add_argument(
        "-f", "--format",
        choices=["text", "json"],
        default="text",
        help="Output format (default: text).",
    )
    p_parse.set_defaults(func=cmd_parse)

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the hierrorchy CLI.

    Parameters
    ----------
    argv:
        Command-line arguments.  ``None`` → ``sys.argv[1:]``.

    Returns
    -------
    int
        Exit code (see module docstring for semantics).
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    _configure_logging(args.verbose)

    # No subcommand given → print help.
    if not hasattr(args, "func"):
        parser.print_help(sys.stderr)
        return EXIT_INFRA

    try:
        return args.func(args)
    except KeyboardInterrupt:
        _log.info("Interrupted by user.")
        return 130
    except SystemExit as exc:
        return exc.code if isinstance(exc.code, int) else EXIT_INFRA
    except ValueError as exc:
        # EmitConfig rejects bad --indent / --base-exception values
        _log.error("%s", exc)
        return EXIT_INFRA
    except OSError as exc:
        _log.error("I/O error: %s", exc)
        return EXIT_INFRA


if __name__ == "__main__":
    raise SystemExit(main())
