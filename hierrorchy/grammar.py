"""
Node declaration grammar (Parsimonious PEG).

::

    ["pub"] "type" Identifier "<" [TypeRef ("," TypeRef)* [","]] ">" ["=" StringLiteral]

Every token is its own named rule so that a failed parse can report which
token was expected (see :data:`TOKEN_DESCRIPTIONS`).
"""

from __future__ import annotations

from typing import Dict

from parsimonious.grammar import Grammar

__all__ = ["NODE_GRAMMAR", "TOKEN_DESCRIPTIONS", "describe_rule"]


NODE_GRAMMAR = Grammar(r'''
    # ─────────────────────────────────────────────────────────────
    # Declaration
    # ─────────────────────────────────────────────────────────────

    node_decl           = _ visibility? type_kw _ identifier _ variant_list _ tail
    visibility          = pub_kw _
    tail                = prefix / end_of_input
    prefix              = equals _ string_literal _ end_of_input

    # ─────────────────────────────────────────────────────────────
    # Variants
    # ─────────────────────────────────────────────────────────────

    variant_list        = open_angle _ variants? close_angle
    variants            = type_ref _ more_variant* trailing_comma?
    more_variant        = comma _ type_ref _
    trailing_comma      = comma _
    type_ref            = identifier qualifier*
    qualifier           = dot identifier

    # ─────────────────────────────────────────────────────────────
    # Tokens
    # ─────────────────────────────────────────────────────────────

    pub_kw              = ~r"pub\b"
    type_kw             = ~r"type\b"
    identifier          = ~r"[A-Za-z_][A-Za-z0-9_]*"
    string_literal      = ~r'"(?:[^"\\\n]|\\.)*"' / ~r"'(?:[^'\\\n]|\\.)*'"
    open_angle          = "<"
    close_angle         = ">"
    comma               = ","
    dot                 = "."
    equals              = "="
    end_of_input        = ~r"\Z"

    # ─────────────────────────────────────────────────────────────
    # Whitespace & comments
    # ─────────────────────────────────────────────────────────────

    _                   = ~r"(?:\s|\#[^\n]*)*"
''')


TOKEN_DESCRIPTIONS: Dict[str, str] = {
    "node_decl": "node declaration",
    "visibility": "'pub'",
    "pub_kw": "'pub'",
    "type_kw": "'type'",
    "identifier": "identifier",
    "type_ref": "type reference",
    "qualifier": "'.'",
    "variant_list": "'<'",
    "variants": "type reference",
    "more_variant": "','",
    "trailing_comma": "','",
    "open_angle": "'<'",
    "close_angle": "'>'",
    "comma": "','",
    "dot": "'.'",
    "equals": "'='",
    "prefix": "'='",
    "tail": "'=' or end of input",
    "string_literal": "string literal",
    "end_of_input": "end of input",
}


def describe_rule(name: str) -> str:
    """Human-readable description of the token a named rule matches."""
    return TOKEN_DESCRIPTIONS.get(name, repr(name))
