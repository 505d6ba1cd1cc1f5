"""
hierrorchy/node.py
==================

Error nodes: a closed sum over child error types.

``pub type ParseErrorNode<Overflow, errors.IoFault>`` becomes a base class
``ParseErrorNode`` with one variant class per child, attached as
``ParseErrorNode.Variant0`` and ``ParseErrorNode.Variant1``. Every variant
holds its child in ``value``; ``cause()`` returns it and ``render()`` prints
``<prefix>: <child rendered>``.

Children are referenced through string annotations and name lookups at call
time, so they may be declared anywhere in the module, before or after the
node.
"""

from __future__ import annotations

import logging
from typing import Optional

from hierrorchy.codegen import CodeEmitter, GeneratedCode
from hierrorchy.config import DEFAULT_CONFIG, EmitConfig
from hierrorchy.errors import EmptyNodeError, SourceSpan
from hierrorchy.model import NodeModel, NodeVariant, build_node_model
from hierrorchy.parser import parse_node_declaration

logger = logging.getLogger(__name__)

__all__ = ["NODE_MARKER", "emit_node", "expand_node"]

NODE_MARKER = "error_node"


def _variant_class_name(model: NodeModel, variant: NodeVariant) -> str:
    # Module-level name used while the variant is being built, deleted afterwards.
    return f"_{model.name}_{variant.tag}"


def _emit_base(emitter: CodeEmitter, model: NodeModel, config: EmitConfig) -> None:
    name = model.name
    esc = CodeEmitter.escape_string

    with emitter.block(f"class {name}({config.base_exception}):"):
        children = ", ".join(str(v.type_ref) for v in model.variants)
        emitter.emit_docstring(f"Error node wrapping one of: {children}.")
        emitter.emit_blank()

        if config.seal_nodes:
            emitter.emit("_sealed = False")
            emitter.emit_blank()

        with emitter.block("def __new__(cls, *args, **kwargs):"):
            with emitter.block(f"if cls is {name}:"):
                emitter.emit(
                    f"raise TypeError({esc(f'{name} cannot be instantiated directly; use one of its variants')})"
                )
            emitter.emit("return super().__new__(cls, *args)")
        emitter.emit_blank()

        if config.seal_nodes:
            with emitter.block("def __init_subclass__(cls, **kwargs):"):
                with emitter.block(f"if {name}._sealed:"):
                    emitter.emit(
                        f"raise TypeError({esc(f'{name} is closed; its variants are fixed')})"
                    )
                emitter.emit("super().__init_subclass__(**kwargs)")
            emitter.emit_blank()

        with emitter.block("def render(self) -> str:"):
            emitter.emit(f"return {esc(model.prefix + ': ')} + str(self.cause())")
        emitter.emit_blank()

        with emitter.block("def cause(self):"):
            emitter.emit("return self.value")
        emitter.emit_blank()

        with emitter.block("def __str__(self) -> str:"):
            emitter.emit("return self.render()")

        for variant in model.variants:
            emitter.emit_blank()
            emitter.emit("@classmethod")
            with emitter.block(
                f"def {variant.factory}(cls, value: {esc(str(variant.type_ref))}) -> {esc(name)}:"
            ):
                emitter.emit(f"return cls.{variant.tag}(value)")

        emitter.emit_blank()
        emitter.emit("@classmethod")
        with emitter.block(f"def lift(cls, value) -> {esc(name)}:"):
            emitter.emit_docstring(
                "Wrap *value* in the first variant whose child type it is an instance of."
            )
            with emitter.block("if isinstance(value, cls):"):
                emitter.emit("return value")
            for variant in model.variants:
                with emitter.block(f"if isinstance(value, {variant.type_ref}):"):
                    emitter.emit(f"return cls.{variant.tag}(value)")
            emitter.emit(
                f"raise TypeError(f\"cannot lift {{type(value).__name__}} into {name}\")"
            )


def _emit_variant(
    emitter: CodeEmitter,
    model: NodeModel,
    variant: NodeVariant,
) -> None:
    temp = _variant_class_name(model, variant)
    esc = CodeEmitter.escape_string

    emitter.emit("@dataclasses.dataclass(eq=False)")
    with emitter.block(f"class {temp}({model.name}):"):
        emitter.emit(f"value: {esc(str(variant.type_ref))}")
        emitter.emit_blank()
        with emitter.block("def __post_init__(self) -> None:"):
            with emitter.block("if isinstance(self.value, BaseException):"):
                emitter.emit("self.__cause__ = self.value")
    emitter.emit_blank(2)
    emitter.emit(f"{temp}.__name__ = {esc(variant.tag)}")
    emitter.emit(f"{temp}.__qualname__ = {esc(f'{model.name}.{variant.tag}')}")
    emitter.emit(f"{model.name}.{variant.tag} = {temp}")
    emitter.emit(f"del {temp}")


def emit_node(model: NodeModel, config: Optional[EmitConfig] = None) -> GeneratedCode:
    """Generate the base class, factories and variant classes for *model*.

    Raises
    ------
    EmptyNodeError
        The node declares no variants; it could never hold a cause.
    """
    config = config or DEFAULT_CONFIG
    if not model.variants:
        raise EmptyNodeError(model.name, span=model.span)

    emitter = CodeEmitter(config.indent)
    _emit_base(emitter, model, config)
    for variant in model.variants:
        emitter.emit_blank(2)
        _emit_variant(emitter, model, variant)
    if config.seal_nodes:
        emitter.emit(f"{model.name}._sealed = True")

    logger.debug("Emitted node %s with %d variant(s)", model.name, len(model.variants))
    return GeneratedCode(
        name=model.name,
        kind="node",
        code=emitter.get_code(),
        imports=("dataclasses",),
        exports=(model.name,) if model.is_public else (),
    )


def expand_node(
    text: str,
    span: Optional[SourceSpan] = None,
    config: Optional[EmitConfig] = None,
) -> GeneratedCode:
    """Parse, model and emit one node declaration."""
    decl = parse_node_declaration(text, span)
    model = build_node_model(decl)
    return emit_node(model, config)
