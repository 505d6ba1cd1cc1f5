"""
hierrorchy: generate error hierarchies for Python.

Two kinds of declaration are expanded into ordinary exception classes:

* **Leaves**: terminal errors with a fixed or templated message::

      @error_leaf("overflow detected")
      class Overflow:
          pass

* **Nodes**: closed unions over child errors, rendered as
  ``<prefix>: <child>``::

      error_node("pub type ParseErrorNode<Overflow, IoFault>")

Submodules
----------
message     Leaf message payloads (literal or template).
leaf        Leaf parsing and emission.
grammar     Parsimonious grammar for node declarations.
parser      Node declaration parser.
model       Declaration / model types and the node model builder.
node        Node emission.
expander    Whole-module expansion.
codegen     Code emitter and naming helpers.
config      Emission settings.
errors      Diagnostics and the exception hierarchy.
main        Command-line interface.
"""

__version__ = "0.1.0"

from hierrorchy.config import DEFAULT_CONFIG, EmitConfig
from hierrorchy.errors import (
    DeclarationError,
    DuplicateVariantError,
    EmptyNodeError,
    ErrorReporter,
    ExpansionError,
    HierrorchyError,
    LeafDeclarationError,
    MessageSyntaxError,
    NodeGrammarError,
    NodeModelError,
    SourceSpan,
)
from hierrorchy.expander import ExpansionResult, expand_source
from hierrorchy.leaf import emit_leaf, expand_leaf, parse_leaf
from hierrorchy.message import LiteralMessage, MessageSpec, TemplateMessage, resolve_message
from hierrorchy.model import (
    LeafDeclaration,
    NodeDeclaration,
    NodeModel,
    NodeVariant,
    TypeReference,
    Visibility,
    build_node_model,
)
from hierrorchy.node import emit_node, expand_node
from hierrorchy.parser import parse_node_declaration

__all__ = [
    "__version__",
    "DEFAULT_CONFIG",
    "EmitConfig",
    "DeclarationError",
    "DuplicateVariantError",
    "EmptyNodeError",
    "ErrorReporter",
    "ExpansionError",
    "HierrorchyError",
    "LeafDeclarationError",
    "MessageSyntaxError",
    "NodeGrammarError",
    "NodeModelError",
    "SourceSpan",
    "ExpansionResult",
    "expand_source",
    "emit_leaf",
    "expand_leaf",
    "parse_leaf",
    "LiteralMessage",
    "MessageSpec",
    "TemplateMessage",
    "resolve_message",
    "LeafDeclaration",
    "NodeDeclaration",
    "NodeModel",
    "NodeVariant",
    "TypeReference",
    "Visibility",
    "build_node_model",
    "emit_node",
    "expand_node",
    "parse_node_declaration",
]
