# tests/test_end_to_end.py
"""
End-to-end tests: template module → expand → exec → construct and render
errors the way client code would.
"""

import pytest

from hierrorchy.expander import expand_source


def _build_and_exec(exec_generated, source):
    """Expand + exec, return the module."""
    result = expand_source(source)
    assert result.ok, [str(d) for d in result.diagnostics]
    return exec_generated(result.code)


class TestScenarios:

    def test_overflow_wrapped_in_node(self, exec_generated, overflow_module):
        mod = _build_and_exec(exec_generated, overflow_module)
        node = mod.ParseErrorNode.from_overflow(mod.Overflow())
        assert node.render() == "ParseErrorNode: overflow detected"
        assert isinstance(node.cause(), mod.Overflow)
        assert node.cause().cause() is None

    def test_nested_nodes_with_prefixes(self, exec_generated, nested_module):
        mod = _build_and_exec(exec_generated, nested_module)
        low = mod.LowNode.from_io_fault(mod.IoFault())
        high = mod.High.from_low_node(low)
        assert high.render() == "high: low: io fault"
        assert high.cause() is low
        assert str(high) == "high: low: io fault"

    def test_node_declared_before_its_children(self, exec_generated, nested_module):
        # High is declared first and still lifts children declared later
        mod = _build_and_exec(exec_generated, nested_module)
        lifted = mod.High.lift(mod.LowNode.lift(mod.IoFault()))
        assert isinstance(lifted, mod.High.Variant0)
        assert lifted.render() == "high: low: io fault"

    def test_templates_render_field_values(self, exec_generated, template_module):
        mod = _build_and_exec(exec_generated, template_module)
        assert mod.BadField("name").render() == "name is wrong"
        assert mod.BadField("").render() == " is wrong"
        assert str(mod.TooMany(0)) == "0 items over limit"
        assert str(mod.TooMany(-3)) == "-3 items over limit"


class TestRaisingAndCatching:

    def test_catch_by_node_type(self, exec_generated, nested_module):
        mod = _build_and_exec(exec_generated, nested_module)

        def read():
            try:
                raise mod.IoFault()
            except mod.IoFault as exc:
                raise mod.LowNode.from_io_fault(exc) from exc

        with pytest.raises(mod.LowNode) as info:
            read()
        assert str(info.value) == "low: io fault"
        assert isinstance(info.value.__cause__, mod.IoFault)

    def test_render_is_recursive_at_any_depth(self, exec_generated, nested_module):
        mod = _build_and_exec(exec_generated, nested_module)
        err = mod.IoFault()
        chain = mod.High.from_low_node(mod.LowNode.from_io_fault(err))
        messages = []
        node = chain
        while node is not None:
            messages.append(node.render())
            node = node.cause()
        assert messages == ["high: low: io fault", "low: io fault", "io fault"]
