# tests/test_parser.py
"""
Tests for the node declaration parser: text → NodeDeclaration.
"""

import pytest

from hierrorchy.errors import ErrorCodes, NodeGrammarError, SourceSpan
from hierrorchy.model import Visibility
from hierrorchy.parser import parse_node_declaration


def _names(decl):
    return [str(ref) for ref in decl.variants]


class TestParseValid:

    def test_public_with_trailing_comma(self):
        decl = parse_node_declaration("pub type Foo<A, B,>")
        assert decl.name == "Foo"
        assert decl.visibility is Visibility.PUBLIC
        assert decl.is_public
        assert _names(decl) == ["A", "B"]
        assert decl.message_prefix is None

    def test_default_visibility_with_prefix(self):
        decl = parse_node_declaration('type Foo<A> = "custom"')
        assert decl.visibility is Visibility.DEFAULT
        assert _names(decl) == ["A"]
        assert decl.message_prefix == "custom"

    def test_single_quoted_prefix(self):
        decl = parse_node_declaration("type Foo<A> = 'custom'")
        assert decl.message_prefix == "custom"

    def test_prefix_escape_is_decoded(self):
        decl = parse_node_declaration(r'type Foo<A> = "tab\tstop"')
        assert decl.message_prefix == "tab\tstop"

    def test_empty_prefix(self):
        decl = parse_node_declaration('type Foo<A> = ""')
        assert decl.message_prefix == ""

    def test_variant_order_is_preserved(self):
        decl = parse_node_declaration("type Foo<C, A, B>")
        assert _names(decl) == ["C", "A", "B"]

    def test_qualified_variants(self):
        decl = parse_node_declaration("type Foo<errors.IoFault, Local>")
        assert _names(decl) == ["errors.IoFault", "Local"]
        assert decl.variants[0].parts == ("errors", "IoFault")

    def test_variant_offsets(self):
        text = "type Foo<A, Bee>"
        decl = parse_node_declaration(text)
        assert text[decl.variants[1].offset:].startswith("Bee")

    def test_empty_variant_list_parses(self):
        decl = parse_node_declaration("type Foo<>")
        assert decl.variants == ()

    def test_whitespace_and_comments(self):
        decl = parse_node_declaration("""
            pub type Foo<   # children
                A,
                B,
            >
        """)
        assert decl.is_public
        assert _names(decl) == ["A", "B"]

    def test_span_is_attached(self):
        span = SourceSpan("errors.py", 3, 12)
        decl = parse_node_declaration("type Foo<A>", span=span)
        assert decl.span == span

    def test_names_starting_with_keywords(self):
        decl = parse_node_declaration("type Classes<match_error, errors.define>")
        assert decl.name == "Classes"
        assert _names(decl) == ["match_error", "errors.define"]


class TestParseErrors:

    def test_missing_comma(self):
        with pytest.raises(NodeGrammarError) as info:
            parse_node_declaration("type Foo<A B>")
        err = info.value
        assert err.code == ErrorCodes.NODE_GRAMMAR
        assert err.expected == ["'>'"]
        assert err.got == "B"
        assert "Separate variants with ','" in str(err)

    def test_unquoted_prefix(self):
        with pytest.raises(NodeGrammarError) as info:
            parse_node_declaration("type Foo<A>= custom")
        assert info.value.expected == ["string literal"]
        assert info.value.got == "custom"

    def test_missing_type_keyword(self):
        with pytest.raises(NodeGrammarError) as info:
            parse_node_declaration("pub Foo<A>")
        assert info.value.expected == ["'type'"]

    def test_trailing_garbage(self):
        with pytest.raises(NodeGrammarError) as info:
            parse_node_declaration("type Foo<A> extra")
        assert info.value.got == "extra"

    def test_unclosed_variant_list(self):
        with pytest.raises(NodeGrammarError) as info:
            parse_node_declaration("type Foo<A,")
        assert "end of input" in info.value.message

    def test_error_location_is_relocated(self):
        span = SourceSpan("errors.py", 10, 12)
        with pytest.raises(NodeGrammarError) as info:
            parse_node_declaration("type Foo<A B>", span=span)
        loc = info.value.span
        assert (loc.file, loc.line) == ("errors.py", 10)
        assert loc.column == 12 + len("type Foo<A ")

    def test_error_location_on_later_line(self):
        text = "type Foo<\n    A\n    B\n>"
        with pytest.raises(NodeGrammarError) as info:
            parse_node_declaration(text, span=SourceSpan("m.py", 4, 20))
        loc = info.value.span
        assert loc.line == 6
        assert loc.column == 5

    @pytest.mark.parametrize("text, word", [
        ("type Foo<class>", "class"),
        ("type None<A>", "None"),
        ("type Foo<A, errors.def>", "def"),
        ("type Foo<match>", "match"),
    ])
    def test_python_keywords_rejected(self, text, word):
        with pytest.raises(NodeGrammarError) as info:
            parse_node_declaration(text)
        err = info.value
        assert err.code == ErrorCodes.NODE_GRAMMAR
        assert err.expected == ["identifier"]
        assert err.got == word

    def test_keyword_location(self):
        span = SourceSpan("errors.py", 3, 12)
        with pytest.raises(NodeGrammarError) as info:
            parse_node_declaration("type Foo<A, class>", span=span)
        loc = info.value.span
        assert loc.line == 3
        assert loc.column == 12 + len("type Foo<A, ")
