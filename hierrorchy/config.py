"""Emission settings shared by the leaf emitter, node emitter and expander."""

from __future__ import annotations

import argparse
from dataclasses import dataclass


@dataclass(frozen=True)
class EmitConfig:
    """Knobs for generated code.

    Attributes
    ----------
    indent:
        One indentation level in generated code.
    base_exception:
        Base class given to leaves declared without bases, and to every node.
    seal_nodes:
        Emit ``__init_subclass__`` guards so a node's variant set stays closed.
    """

    indent: str = "    "
    base_exception: str = "Exception"
    seal_nodes: bool = True

    def __post_init__(self) -> None:
        if not self.indent or self.indent.strip():
            raise ValueError(f"indent must be non-empty whitespace, got {self.indent!r}")
        if not self.base_exception.replace(".", "").replace("_", "").isalnum():
            raise ValueError(f"invalid base exception name: {self.base_exception!r}")

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> "EmitConfig":
        """Build a config from parsed CLI flags, keeping defaults for absent ones."""
        kwargs = {}
        indent = getattr(args, "indent", None)
        if indent is not None:
            kwargs["indent"] = " " * indent
        base = getattr(args, "base_exception", None)
        if base:
            kwargs["base_exception"] = base
        if getattr(args, "no_seal", False):
            kwargs["seal_nodes"] = False
        return cls(**kwargs)


DEFAULT_CONFIG = EmitConfig()
