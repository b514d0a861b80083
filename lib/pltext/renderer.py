"""
HTML renderer for the pl-text AST

Two flavours are supported:
- advanced: Physics-Lab flavoured HTML with colors, font sizes, user
  mentions and links to experiments and discussions on ``host``
- basic: plain HTML, Physics-Lab specific containers are reduced to their
  contents
"""

import html
import re
from typing import Any, Dict, Iterable, List, Optional

from .ast_nodes import (
    A,
    B,
    Color,
    Del,
    Discussion,
    Experiment,
    H1,
    H2,
    H3,
    H4,
    H5,
    H6,
    I,
    NodeType,
    P,
    PairedTagBase,
    PlTextNode,
    Size,
    U8Char,
    User,
)
from .types import BackendText


DEFAULT_HOST = "localhost:5173"

# Color of Physics-Lab <a> text
PL_A_COLOR = "#0000AA"

# Accepted <color=...> values: a hex color or a plain CSS color name
_COLOR_PATTERN = re.compile(r"#[0-9A-Fa-f]{3,8}|[A-Za-z]+")

_LEAF_HTML: Dict[NodeType, str] = {
    NodeType.LINE_BREAK: "<br>",
    NodeType.SPACE: "&nbsp;",
    NodeType.LESS_THAN: "&lt;",
    NodeType.GREATER_THAN: "&gt;",
    NodeType.AMPERSAND: "&amp;",
    NodeType.SINGLE_QUOTE: "&apos;",
    NodeType.DOUBLE_QUOTE: "&quot;",
    NodeType.HTML_BR: "<br>",
    NodeType.HTML_HR: "<hr>",
}

_HTML_TAG_NAMES = {
    B: "b",
    I: "i",
    Del: "del",
    P: "p",
    H1: "h1",
    H2: "h2",
    H3: "h3",
    H4: "h4",
    H5: "h5",
    H6: "h6",
}


class HTMLRenderer:
    """
    Renderer that converts a pl-text AST to HTML.

    UTF-8 code units are collected until the next non-text node and decoded
    as one run, so multi-byte characters survive the one-node-per-byte
    representation.
    """

    def __init__(self, options: Optional[Dict[str, Any]] = None):
        """
        Initialize the HTML renderer.

        Args:
            options: Optional rendering configuration (``host``, ``backend``)
        """
        self.options = options or {}

        self.host = str(self.options.get("host", DEFAULT_HOST))
        self.backend = BackendText.fromValue(self.options.get("backend", BackendText.ADVANCED))

    def render(self, nodes: Iterable[PlTextNode]) -> str:
        """
        Render nodes to HTML.

        Args:
            nodes: Nodes in document order

        Returns:
            HTML string
        """
        return self._renderNodes(nodes)

    def _renderNodes(self, nodes: Iterable[PlTextNode]) -> str:
        htmlParts: List[str] = []
        pendingBytes = bytearray()

        for node in nodes:
            if isinstance(node, U8Char):
                pendingBytes.append(node.byte)
                continue

            if pendingBytes:
                htmlParts.append(self._renderText(pendingBytes))
                pendingBytes = bytearray()
            htmlParts.append(self._renderNode(node))

        if pendingBytes:
            htmlParts.append(self._renderText(pendingBytes))

        return "".join(htmlParts)

    def _renderText(self, data: bytearray) -> str:
        # replace only matters for hand-built trees, parser output is valid UTF-8
        return html.escape(data.decode("utf-8", errors="replace"), quote=True)

    def _renderNode(self, node: PlTextNode) -> str:
        """Render a single non-text node."""
        leafHtml = _LEAF_HTML.get(node.nodeType)
        if leafHtml is not None:
            return leafHtml

        if not isinstance(node, PairedTagBase):
            raise ValueError(f"Unknown node type: {type(node).__name__}")

        content = self._renderNodes(node.children)

        tagName = _HTML_TAG_NAMES.get(type(node))
        if tagName is not None:
            return f"<{tagName}>{content}</{tagName}>"

        if self.backend == BackendText.BASIC:
            # Physics-Lab specific containers have no plain HTML counterpart
            return content

        if isinstance(node, A):
            return f'<span style="color:{PL_A_COLOR};">{content}</span>'
        elif isinstance(node, Color):
            if not _COLOR_PATTERN.fullmatch(node.color):
                return content
            return f'<span style="color:{node.color};">{content}</span>'
        elif isinstance(node, Size):
            return f'<span style="font-size:{node.size}px;">{content}</span>'
        elif isinstance(node, User):
            return f"<span class='RUser' data-user='{self._escapeAttr(node.id)}'>{content}</span>"
        elif isinstance(node, Experiment):
            return self._renderInternalLink("Experiment", node.id, content)
        elif isinstance(node, Discussion):
            return self._renderInternalLink("Discussion", node.id, content)

        raise ValueError(f"Unknown node type: {type(node).__name__}")

    def _renderInternalLink(self, kind: str, id: str, content: str) -> str:
        href = f"{self.host}/ExperimentSummary/{kind}/{id}"
        return f'<a href="{self._escapeAttr(href)}" internal>{content}</a>'

    def _escapeAttr(self, value: str) -> str:
        return html.escape(value, quote=True)


def ast2html(
    nodes: Iterable[PlTextNode], host: str = DEFAULT_HOST, backend: BackendText = BackendText.ADVANCED
) -> str:
    """
    Render a parsed pl-text AST to HTML.

    Args:
        nodes: Nodes in document order
        host: Host used for experiment and discussion links
        backend: Renderer flavour

    Returns:
        HTML string
    """
    return HTMLRenderer({"host": host, "backend": backend}).render(nodes)
