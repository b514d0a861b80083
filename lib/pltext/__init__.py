"""
pl-text to HTML converter

pl-text is the small tag-based markup used in Physics-Lab comments and
discussions. This module provides:
- Parsing of pl-text into an AST (recursive descent over the UTF-8 bytes)
- A single-owner box used while the AST is being built
- HTML rendering in basic and advanced (Physics-Lab flavoured) modes

Usage:
    from lib.pltext import PlTextParser, pltxt2advancedHtml

    parser = PlTextParser({"host": "physics-lab.example"})
    nodes = parser.parse("<b>bold</b> and <color=red>red</color>")
    html = parser.parseToHtml("<size=20>big</size>")

    # Convenience function
    html = pltxt2advancedHtml("<user=42>Alice</user>", "physics-lab.example")

Supported tags (names are case-insensitive):
- paired: a, b, i, p, del, h1-h6, color=, discussion=, experiment=, user=, size=
- void: br, hr (also written as <br/>, <hr />)
Anything else starting with ``<`` is kept as text.
"""

from .ast_nodes import (
    A,
    Ampersand,
    B,
    Br,
    Color,
    Del,
    Discussion,
    DoubleQuotationMark,
    Experiment,
    GreaterThan,
    H1,
    H2,
    H3,
    H4,
    H5,
    H6,
    Hr,
    I,
    LessThan,
    LineBreak,
    NodeType,
    P,
    PairedTagBase,
    PlTextNode,
    SingleQuotationMark,
    Size,
    Space,
    U8Char,
    User,
)
from .errors import HeapGuardError, IndexOutOfBoundError, InvalidUtf8Error, PlTextAssertionError, PlTextError
from .heap_guard import HeapGuard
from .parser import PlTextParser, parsePlText, pltxt2advancedHtml, pltxt2commonHtml, pltxt2html
from .renderer import HTMLRenderer, ast2html
from .types import BackendText, PlTextParserConfig
from .version import __version__

__all__ = [
    "PlTextParser",
    "parsePlText",
    "pltxt2html",
    "pltxt2advancedHtml",
    "pltxt2commonHtml",
    "HTMLRenderer",
    "ast2html",
    "BackendText",
    "PlTextParserConfig",
    "HeapGuard",
    # Errors
    "PlTextError",
    "InvalidUtf8Error",
    "PlTextAssertionError",
    "IndexOutOfBoundError",
    "HeapGuardError",
    # AST Nodes
    "NodeType",
    "PlTextNode",
    "PairedTagBase",
    "LineBreak",
    "Space",
    "LessThan",
    "GreaterThan",
    "Ampersand",
    "SingleQuotationMark",
    "DoubleQuotationMark",
    "U8Char",
    "Br",
    "Hr",
    "A",
    "B",
    "I",
    "Del",
    "P",
    "H1",
    "H2",
    "H3",
    "H4",
    "H5",
    "H6",
    "Color",
    "Discussion",
    "Experiment",
    "User",
    "Size",
    "__version__",
]
