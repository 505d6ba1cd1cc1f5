# tests/conftest.py
"""
Shared fixtures: sample declarations and a helper that executes generated
code inside a real (registered) module, the way an expanded file is
imported in practice.
"""

import itertools
import sys
import textwrap
import types

import pytest


# ---------------------------------------------------------------------------
# Sample modules
# ---------------------------------------------------------------------------

# The two scenarios every implementation must reproduce.
OVERFLOW_MODULE = textwrap.dedent('''\
    """Parse errors."""

    from hierrorchy import error_leaf, error_node


    @error_leaf("overflow detected")
    class Overflow:
        pass


    error_node("pub type ParseErrorNode<Overflow,>")
''')

NESTED_MODULE = textwrap.dedent('''\
    from hierrorchy import error_leaf, error_node

    error_node('type High<LowNode> = "high"')

    error_node('type LowNode<IoFault> = "low"')


    @error_leaf("io fault")
    class IoFault:
        pass
''')

TEMPLATE_MODULE = textwrap.dedent('''\
    from hierrorchy import error_leaf

    __all__ = ["BadField"]


    @error_leaf("{} is wrong".format(self.field))
    class BadField:
        field: str


    @error_leaf(f"{self.count} items over limit")
    class TooMany:
        count: int
''')


@pytest.fixture
def overflow_module():
    return OVERFLOW_MODULE


@pytest.fixture
def nested_module():
    return NESTED_MODULE


@pytest.fixture
def template_module():
    return TEMPLATE_MODULE


# ---------------------------------------------------------------------------
# Execution helper
# ---------------------------------------------------------------------------

_counter = itertools.count()


@pytest.fixture
def exec_generated(monkeypatch):
    """Return ``run(code) -> module`` executing *code* as a fresh module.

    dataclasses resolves string annotations through ``sys.modules``, so the
    module is registered for the duration of the test.
    """

    def run(code, name=None):
        name = name or f"_hierrorchy_generated_{next(_counter)}"
        module = types.ModuleType(name)
        monkeypatch.setitem(sys.modules, name, module)
        exec(compile(code, f"<{name}>", "exec"), module.__dict__)
        return module

    return run
