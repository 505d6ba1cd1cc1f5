"""Declaration and model types, and the node model builder.

A :class:`NodeDeclaration` is what the node grammar produces; a
:class:`NodeModel` is what the node emitter consumes. The builder between
them assigns each variant its positional tag (``Variant0``, ``Variant1``, ...)
and the name of its conversion factory.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from hierrorchy.codegen import snake_case
from hierrorchy.errors import DuplicateVariantError, SourceSpan
from hierrorchy.message import MessageSpec

logger = logging.getLogger(__name__)

__all__ = [
    "Visibility",
    "TypeReference",
    "LeafDeclaration",
    "NodeDeclaration",
    "NodeVariant",
    "NodeModel",
    "build_node_model",
    "variant_tag",
]


class Visibility(enum.Enum):
    PUBLIC = "pub"
    DEFAULT = "default"


# ─────────────────────────────────────────────────────────────
# Declarations
# ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class TypeReference:
    """A possibly-qualified name of a child error type, e.g. ``errors.IoFault``."""

    name: str
    offset: int = 0  # position inside the declaration text

    @property
    def parts(self) -> Tuple[str, ...]:
        return tuple(self.name.split("."))

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class LeafDeclaration:
    """A class decorated with ``@error_leaf``.

    ``body`` is carried through verbatim; only the message may refer to the
    fields it declares.
    """

    name: str
    message: MessageSpec
    header: str
    body: Tuple[str, ...]
    body_indent: str
    decorators: Tuple[str, ...] = ()
    has_bases: bool = False
    has_dataclass: bool = False
    span: SourceSpan = field(default_factory=SourceSpan)


@dataclass(frozen=True)
class NodeDeclaration:
    """Parsed ``["pub"] type Name<T0, T1, ...> ["=" "prefix"]``."""

    name: str
    variants: Tuple[TypeReference, ...]
    visibility: Visibility = Visibility.DEFAULT
    message_prefix: Optional[str] = None
    span: SourceSpan = field(default_factory=SourceSpan)

    @property
    def is_public(self) -> bool:
        return self.visibility is Visibility.PUBLIC


# ─────────────────────────────────────────────────────────────
# Model
# ─────────────────────────────────────────────────────────────

def variant_tag(index: int) -> str:
    return f"Variant{index}"


@dataclass(frozen=True)
class NodeVariant:
    index: int
    type_ref: TypeReference

    @property
    def tag(self) -> str:
        return variant_tag(self.index)

    @property
    def factory(self) -> str:
        return f"from_{snake_case(self.type_ref.name)}"


@dataclass(frozen=True)
class NodeModel:
    name: str
    variants: Tuple[NodeVariant, ...]
    visibility: Visibility = Visibility.DEFAULT
    message_prefix: Optional[str] = None
    span: SourceSpan = field(default_factory=SourceSpan)

    @property
    def prefix(self) -> str:
        """Text rendered before the cause: the declared prefix, else the node name."""
        if self.message_prefix is not None:
            return self.message_prefix
        return self.name

    @property
    def is_public(self) -> bool:
        return self.visibility is Visibility.PUBLIC


def build_node_model(decl: NodeDeclaration) -> NodeModel:
    """Turn a parsed node declaration into the table the emitter consumes.

    Tags are assigned by position, so reordering the declared variants
    changes which tag (and factory) belongs to which child type and nothing
    else. An empty variant list is accepted here; the emitter rejects it.

    Raises
    ------
    DuplicateVariantError
        Two variants name the same child type, or derive the same factory name.
    """
    variants = tuple(
        NodeVariant(index=i, type_ref=ref) for i, ref in enumerate(decl.variants)
    )

    seen: Dict[str, NodeVariant] = {}
    for variant in variants:
        previous = seen.get(variant.factory)
        if previous is not None:
            raise DuplicateVariantError(
                decl.name,
                variant.type_ref.name,
                previous.index,
                variant.index,
                first_ref=previous.type_ref.name,
                span=decl.span,
            ).add_note(
                f"both variants would be constructed by {decl.name}.{variant.factory}()"
            )
        seen[variant.factory] = variant

    logger.debug(
        "Built model for %s: %s",
        decl.name,
        ", ".join(f"{v.tag}={v.type_ref}" for v in variants) or "<no variants>",
    )
    return NodeModel(
        name=decl.name,
        variants=variants,
        visibility=decl.visibility,
        message_prefix=decl.message_prefix,
        span=decl.span,
    )
