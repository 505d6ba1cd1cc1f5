# tests/test_node.py
"""
Tests for node emission: NodeModel → base class, factories and variants.
"""

import dataclasses

import pytest

from hierrorchy.config import EmitConfig
from hierrorchy.errors import EmptyNodeError, ErrorCodes, NodeGrammarError
from hierrorchy.leaf import expand_leaf
from hierrorchy.model import build_node_model
from hierrorchy.node import emit_node, expand_node
from hierrorchy.parser import parse_node_declaration


def _build(exec_generated, decl, *leaves, config=None):
    """Expand *leaves* (``(name, message)`` pairs) and the node, exec all."""
    parts = ["import dataclasses\n"]
    for name, message in leaves:
        parts.append(expand_leaf(repr(message), f"class {name}:\n    pass").code)
    parts.append(expand_node(decl, config=config).code)
    return exec_generated("\n\n".join(parts))


class TestEmitNode:

    def test_generated_code_compiles(self):
        gen = expand_node("pub type Foo<A, B>")
        compile(gen.with_imports(), "<test>", "exec")

    def test_metadata(self):
        gen = expand_node("pub type Foo<A, B>")
        assert gen.name == "Foo"
        assert gen.kind == "node"
        assert gen.imports == ("dataclasses",)
        assert gen.exports == ("Foo",)

    def test_default_visibility_exports_nothing(self):
        assert expand_node("type Foo<A>").exports == ()

    def test_zero_variants_rejected(self):
        model = build_node_model(parse_node_declaration("type Foo<>"))
        with pytest.raises(EmptyNodeError) as info:
            emit_node(model)
        assert info.value.code == ErrorCodes.EMPTY_NODE

    def test_grammar_error_propagates(self):
        with pytest.raises(NodeGrammarError):
            expand_node("type Foo<A B>")

    def test_no_seal(self):
        code = expand_node("type Foo<A>", config=EmitConfig(seal_nodes=False)).code
        assert "__init_subclass__" not in code
        assert "_sealed" not in code

    def test_custom_base(self):
        code = expand_node("type Foo<A>", config=EmitConfig(base_exception="RuntimeError")).code
        assert "class Foo(RuntimeError):" in code

    def test_custom_indent(self):
        code = expand_node("type Foo<A>", config=EmitConfig(indent="  ")).code
        assert "\n  def render(self) -> str:\n" in code


class TestNodeBehaviour:

    def test_render_default_prefix(self, exec_generated):
        mod = _build(exec_generated, "type ParseErrorNode<Overflow>", ("Overflow", "overflow detected"))
        node = mod.ParseErrorNode.from_overflow(mod.Overflow())
        assert node.render() == "ParseErrorNode: overflow detected"
        assert str(node) == "ParseErrorNode: overflow detected"

    def test_render_custom_prefix(self, exec_generated):
        mod = _build(exec_generated, 'type Foo<A> = "custom"', ("A", "a failed"))
        assert mod.Foo.from_a(mod.A()).render() == "custom: a failed"

    def test_cause_is_the_child(self, exec_generated):
        mod = _build(exec_generated, "type Foo<A, B>", ("A", "a"), ("B", "b"))
        a, b = mod.A(), mod.B()
        assert mod.Foo.from_a(a).cause() is a
        assert mod.Foo.from_b(b).cause() is b

    def test_variant_tags_by_position(self, exec_generated):
        mod = _build(exec_generated, "type Foo<A, B>", ("A", "a"), ("B", "b"))
        assert isinstance(mod.Foo.from_a(mod.A()), mod.Foo.Variant0)
        assert isinstance(mod.Foo.from_b(mod.B()), mod.Foo.Variant1)
        assert mod.Foo.Variant0.__name__ == "Variant0"
        assert mod.Foo.Variant1.__qualname__ == "Foo.Variant1"

    def test_variants_are_dataclasses(self, exec_generated):
        mod = _build(exec_generated, "type Foo<A>", ("A", "a"))
        assert dataclasses.is_dataclass(mod.Foo.Variant0)
        assert repr(mod.Foo.from_a(mod.A())) == "Foo.Variant0(value=A())"

    def test_pattern_matching_on_variants(self, exec_generated):
        mod = _build(exec_generated, "type Foo<A, B>", ("A", "a"), ("B", "b"))
        node = mod.Foo.from_b(mod.B())
        match node:
            case mod.Foo.Variant0(value):
                picked = ("a", value)
            case mod.Foo.Variant1(value):
                picked = ("b", value)
        assert picked[0] == "b"
        assert picked[1] is node.cause()

    def test_traceback_chain(self, exec_generated):
        mod = _build(exec_generated, "type Foo<A>", ("A", "a"))
        child = mod.A()
        assert mod.Foo.from_a(child).__cause__ is child

    def test_node_is_raisable(self, exec_generated):
        mod = _build(exec_generated, "type Foo<A>", ("A", "a"))
        with pytest.raises(mod.Foo, match="Foo: a"):
            raise mod.Foo.from_a(mod.A())

    def test_base_cannot_be_instantiated(self, exec_generated):
        mod = _build(exec_generated, "type Foo<A>", ("A", "a"))
        with pytest.raises(TypeError):
            mod.Foo()

    def test_sealed(self, exec_generated):
        mod = _build(exec_generated, "type Foo<A>", ("A", "a"))
        with pytest.raises(TypeError):
            type("Extra", (mod.Foo,), {})

    def test_unsealed_allows_subclass(self, exec_generated):
        mod = _build(exec_generated, "type Foo<A>", ("A", "a"), config=EmitConfig(seal_nodes=False))
        assert issubclass(type("Extra", (mod.Foo,), {}), mod.Foo)

    def test_lift(self, exec_generated):
        mod = _build(exec_generated, "type Foo<A, B>", ("A", "a"), ("B", "b"))
        b = mod.B()
        lifted = mod.Foo.lift(b)
        assert isinstance(lifted, mod.Foo.Variant1)
        assert lifted.cause() is b
        assert mod.Foo.lift(lifted) is lifted
        with pytest.raises(TypeError):
            mod.Foo.lift(ValueError("nope"))

    def test_non_exception_child(self, exec_generated):
        mod = _build(exec_generated, "type Foo<str>")
        node = mod.Foo.from_str("plain text")
        assert node.render() == "Foo: plain text"
        assert node.__cause__ is None

    def test_variants_compare_by_identity(self, exec_generated):
        mod = _build(exec_generated, "type Foo<A>", ("A", "a"))
        a = mod.A()
        assert mod.Foo.from_a(a) != mod.Foo.from_a(a)
