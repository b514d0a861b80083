"""
Main pl-text Parser

This module turns pl-text (the markup used in Physics-Lab comments) into an
ordered list of AST nodes and, through the renderer, into HTML.

The parser is a single recursive-descent pass over the UTF-8 bytes. Each
paired tag recurses into the rest of the input with the tag's kind as the
expected closing context; the recursive call returns its nodes together
with the number of bytes it consumed so the caller can resume right after
the closing tag. A ``<`` that does not start a recognised tag is kept as a
literal ``<`` and scanning resumes at the next byte, so every input has a
defined tree.
"""

import logging
from typing import Any, Callable, Dict, List, NamedTuple, Optional, Type, Union

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
    HEADER_CLASSES,
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
from .errors import InvalidUtf8Error, PlTextAssertionError
from .heap_guard import HeapGuard
from .lexer import (
    CASE_BIT,
    LESS_THAN,
    SLASH,
    ByteView,
    isValidBareTag,
    isValidEqualSignTag,
    tryParseSelfClosingTag,
    u8str2int,
    utf8SequenceLength,
)
from .renderer import DEFAULT_HOST, HTMLRenderer
from .types import BackendText, PlTextParserConfig

logger = logging.getLogger(__name__)

DEFAULT_MAX_NESTING_DEPTH = 100
# Each open container costs four interpreter frames (_parseNodes, _parseTag, handler,
# _openPairedTag), so 128 levels stay well below the default recursion limit of 1000
MAX_NESTING_DEPTH = 128

PlTextInput = Union[str, bytes, bytearray, memoryview]

# Bytes that always map to one fixed leaf
_LEAF_NODES: Dict[int, Type[PlTextNode]] = {
    ord("\n"): LineBreak,
    ord(" "): Space,
    ord("&"): Ampersand,
    ord("'"): SingleQuotationMark,
    ord('"'): DoubleQuotationMark,
    ord(">"): GreaterThan,
}

# Closing tag names, matched right after "</"
_CLOSING_TAG_NAMES: Dict[NodeType, bytes] = {
    NodeType.PL_A: b"a",
    NodeType.PL_B: b"b",
    NodeType.PL_I: b"i",
    NodeType.PL_COLOR: b"color",
    NodeType.PL_DISCUSSION: b"discussion",
    NodeType.PL_EXPERIMENT: b"experiment",
    NodeType.PL_SIZE: b"size",
    NodeType.PL_USER: b"user",
    NodeType.HTML_P: b"p",
    NodeType.HTML_DEL: b"del",
    NodeType.HTML_H1: b"h1",
    NodeType.HTML_H2: b"h2",
    NodeType.HTML_H3: b"h3",
    NodeType.HTML_H4: b"h4",
    NodeType.HTML_H5: b"h5",
    NodeType.HTML_H6: b"h6",
}


class _ParseResult(NamedTuple):
    """Nodes of one window, bytes consumed from it and whether the context was closed."""

    nodes: List[HeapGuard[PlTextNode]]
    consumed: int
    closed: bool


def toPlTextBytes(pltext: PlTextInput) -> bytes:
    """
    Encode or validate the input as UTF-8.

    Raises:
        InvalidUtf8Error: If the input is not well-formed UTF-8
        ValueError: If the input is neither text nor bytes
    """
    if isinstance(pltext, str):
        try:
            return pltext.encode("utf-8")
        except UnicodeEncodeError as e:
            raise InvalidUtf8Error(f"Text is not encodable as UTF-8: {e.reason}") from e

    if not isinstance(pltext, (bytes, bytearray, memoryview)):
        raise ValueError("Input must be str or bytes")

    data = bytes(pltext)
    try:
        data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise InvalidUtf8Error(f"Invalid UTF-8 input: {e.reason}", e.start) from e
    return data


def checkNestingDepth(value: Any) -> int:
    """
    Validate a nesting depth limit.

    Raises:
        ValueError: If the value is not an integer in 0..MAX_NESTING_DEPTH
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"maxNestingDepth must be an integer, got {value!r}")
    if not 0 <= value <= MAX_NESTING_DEPTH:
        raise ValueError(f"maxNestingDepth must be between 0 and {MAX_NESTING_DEPTH}, got {value}")
    return value


class PlTextParser:
    """
    Recursive-descent parser for pl-text.

    Tag names are matched case-insensitively; attribute values are kept
    verbatim. A container whose closing tag never appears is dropped along
    with everything parsed inside it.
    """

    def __init__(self, options: Optional[PlTextParserConfig] = None):
        """
        Initialize the parser.

        Args:
            options: Optional parser configuration
        """
        self.options: Dict[str, Any] = dict(options or {})

        self.maxNestingDepth = checkNestingDepth(self.options.get("maxNestingDepth", DEFAULT_MAX_NESTING_DEPTH))
        self.ndebug = bool(self.options.get("ndebug", False))

        self.htmlRenderer = HTMLRenderer(
            {
                "host": self.options.get("host", DEFAULT_HOST),
                "backend": self.options.get("backend", BackendText.ADVANCED),
            }
        )

        self._tagHandlers: Dict[int, Callable[[ByteView, int, int, List[HeapGuard[PlTextNode]]], Optional[int]]] = {
            ord("a"): self._parseA,
            ord("b"): self._parseBoldOrBr,
            ord("c"): self._parseColor,
            ord("d"): self._parseDelOrDiscussion,
            ord("e"): self._parseExperiment,
            ord("h"): self._parseHeaderOrHr,
            ord("i"): self._parseI,
            ord("p"): self._parseP,
            ord("s"): self._parseSize,
            ord("u"): self._parseUser,
        }

        self._resetStats()

    def parse(self, pltext: PlTextInput) -> List[PlTextNode]:
        """
        Parse pl-text into a list of AST nodes.

        Args:
            pltext: Text, or its UTF-8 bytes

        Returns:
            Nodes in document order

        Raises:
            InvalidUtf8Error: If the input is not well-formed UTF-8
        """
        data = toPlTextBytes(pltext)
        self._resetStats()
        self.parseStats["bytesProcessed"] = len(data)

        parsed = self._parseNodes(ByteView(data, ndebug=self.ndebug), NodeType.BASE, 0)
        nodes = [guard.release() for guard in parsed.nodes]

        self.parseStats["nodesCreated"] = self._countNodes(nodes)
        logger.debug(f"Parsed {len(data)} bytes into {self.parseStats['nodesCreated']} nodes")
        return nodes

    def parseToHtml(self, pltext: PlTextInput) -> str:
        """
        Parse pl-text and render it with the configured backend.

        Args:
            pltext: Text, or its UTF-8 bytes

        Returns:
            HTML string
        """
        return self.htmlRenderer.render(self.parse(pltext))

    def getAstJson(self, pltext: PlTextInput) -> List[Dict[str, Any]]:
        """
        Parse pl-text and return the AST as JSON-serializable dictionaries.
        """
        return [node.toDict() for node in self.parse(pltext)]

    def getStats(self) -> Dict[str, Any]:
        """Get statistics of the last parse."""
        return self.parseStats.copy()

    def getOption(self, key: str, default: Any = None) -> Any:
        return self.options.get(key, default)

    def setOption(self, key: str, value: Any) -> None:
        """
        Set a parser option and update the affected component.

        Args:
            key: Option name
            value: Option value

        Raises:
            ValueError: If ``maxNestingDepth`` is outside 0..MAX_NESTING_DEPTH
        """
        if key == "maxNestingDepth":
            value = checkNestingDepth(value)
            self.maxNestingDepth = value
        self.options[key] = value

        if key == "ndebug":
            self.ndebug = bool(value)
        elif key in ("host", "backend"):
            self.htmlRenderer = HTMLRenderer(
                {
                    "host": self.options.get("host", DEFAULT_HOST),
                    "backend": self.options.get("backend", BackendText.ADVANCED),
                }
            )

    def _resetStats(self) -> None:
        self.parseStats: Dict[str, int] = {
            "bytesProcessed": 0,
            "nodesCreated": 0,
            "droppedContainers": 0,
            "depthLimitHits": 0,
            "maxDepth": 0,
        }

    def _at(self, view: ByteView, i: int) -> int:
        """Byte access for the dispatch loop, unchecked in release mode."""
        if self.ndebug:
            return view.indexUnchecked(i)
        return view.index(i)

    def _parseNodes(self, view: ByteView, context: NodeType, depth: int) -> _ParseResult:
        """
        Parse one window of the input.

        Args:
            view: Bytes to parse; always ends at end of input
            context: Kind of the container whose closing tag ends this window,
                     NodeType.BASE at top level
            depth: Number of containers currently open

        Returns:
            _ParseResult, ``consumed`` includes the closing tag when ``closed``
        """
        if depth > self.parseStats["maxDepth"]:
            self.parseStats["maxDepth"] = depth

        result: List[HeapGuard[PlTextNode]] = []
        viewSize = len(view)
        i = 0
        while i < viewSize:
            char = self._at(view, i)

            leafType = _LEAF_NODES.get(char)
            if leafType is not None:
                result.append(HeapGuard(leafType))
                i += 1
                continue

            if char == LESS_THAN:
                if i + 1 < viewSize:
                    if self._at(view, i + 1) == SLASH:
                        closingLen = self._tryParseClosingTag(view.subview(i + 2), context)
                        if closingLen is not None:
                            return _ParseResult(result, i + 2 + closingLen, True)
                    else:
                        nextIndex = self._parseTag(view, i, depth, result)
                        if nextIndex is not None:
                            i = nextIndex
                            continue

                result.append(HeapGuard(LessThan))
                i += 1
                continue

            if char <= 0x1F or 0x7F <= char <= 0x9F:
                # control characters are dropped
                i += 1
                continue

            seqLen = utf8SequenceLength(char)
            if seqLen == 0:
                raise PlTextAssertionError(f"Invalid UTF-8 lead byte 0x{char:02x} at {view.start + i}")
            for k in range(seqLen):
                result.append(HeapGuard(U8Char, self._at(view, i + k)))
            i += seqLen

        return _ParseResult(result, viewSize, False)

    def _tryParseClosingTag(self, tagView: ByteView, context: NodeType) -> Optional[int]:
        """Match the closing tag of ``context``; None if it does not match or no context is open."""
        tagName = _CLOSING_TAG_NAMES.get(context)
        if tagName is None:
            return None
        return isValidBareTag(tagView, tagName)

    def _parseTag(self, view: ByteView, i: int, depth: int, result: List[HeapGuard[PlTextNode]]) -> Optional[int]:
        """
        Dispatch on the byte after ``<`` at ``i``.

        Returns:
            Index just past everything the tag consumed, or None to keep ``<`` as text
        """
        letter = self._at(view, i + 1)
        if 0x41 <= letter <= 0x5A:
            letter |= CASE_BIT

        handler = self._tagHandlers.get(letter)
        if handler is None:
            return None
        return handler(view, i, depth, result)

    def _openPairedTag(
        self,
        view: ByteView,
        i: int,
        tagLen: int,
        nodeClass: Type[PairedTagBase],
        depth: int,
        result: List[HeapGuard[PlTextNode]],
        *attrs: Any,
    ) -> Optional[int]:
        """
        Parse the body of a paired tag whose opening tag spans ``tagLen`` bytes after ``<x``.

        Returns:
            Index just past the closing tag (or end of input), None if the depth limit refuses the tag
        """
        if depth >= self.maxNestingDepth:
            self.parseStats["depthLimitHits"] += 1
            logger.debug(f"Nesting depth {self.maxNestingDepth} reached, keeping <{nodeClass.__name__}> as text")
            return None

        bodyStart = i + 2 + tagLen
        body = self._parseNodes(view.subview(bodyStart), nodeClass.NODE_TYPE, depth + 1)

        if body.closed:
            guard = HeapGuard(nodeClass, [child.release() for child in body.nodes], *attrs)
            result.append(HeapGuard.fromGuard(guard, PlTextNode))
        else:
            self.parseStats["droppedContainers"] += 1
            logger.debug(
                f"Dropping unterminated {nodeClass.NODE_TYPE.value} opened at byte {view.start + i} "
                f"with {len(body.nodes)} children"
            )
            for child in body.nodes:
                child.destroy()

        return bodyStart + body.consumed

    def _parseA(self, view, i, depth, result):
        tagLen = isValidBareTag(view.subview(i + 2))
        if tagLen is None:
            return None
        return self._openPairedTag(view, i, tagLen, A, depth, result)

    def _parseBoldOrBr(self, view, i, depth, result):
        tagView = view.subview(i + 2)
        tagLen = isValidBareTag(tagView)
        if tagLen is not None:
            return self._openPairedTag(view, i, tagLen, B, depth, result)

        tagLen = tryParseSelfClosingTag(tagView, b"r")
        if tagLen:
            result.append(HeapGuard(Br))
            return i + 2 + tagLen
        return None

    def _parseColor(self, view, i, depth, result):
        match = isValidEqualSignTag(view.subview(i + 2), b"olor")
        if match is None:
            return None
        tagLen, color = match
        return self._openPairedTag(view, i, tagLen, Color, depth, result, color.decode("utf-8"))

    def _parseDelOrDiscussion(self, view, i, depth, result):
        tagView = view.subview(i + 2)
        tagLen = isValidBareTag(tagView, b"el")
        if tagLen is not None:
            return self._openPairedTag(view, i, tagLen, Del, depth, result)

        match = isValidEqualSignTag(tagView, b"iscussion")
        if match is None:
            return None
        tagLen, id = match
        return self._openPairedTag(view, i, tagLen, Discussion, depth, result, id.decode("utf-8"))

    def _parseExperiment(self, view, i, depth, result):
        match = isValidEqualSignTag(view.subview(i + 2), b"xperiment")
        if match is None:
            return None
        tagLen, id = match
        return self._openPairedTag(view, i, tagLen, Experiment, depth, result, id.decode("utf-8"))

    def _parseHeaderOrHr(self, view, i, depth, result):
        tagView = view.subview(i + 2)
        for level, headerClass in enumerate(HEADER_CLASSES, start=1):
            tagLen = isValidBareTag(tagView, str(level).encode("ascii"))
            if tagLen is not None:
                return self._openPairedTag(view, i, tagLen, headerClass, depth, result)

        tagLen = tryParseSelfClosingTag(tagView, b"r")
        if tagLen:
            result.append(HeapGuard(Hr))
            return i + 2 + tagLen
        return None

    def _parseI(self, view, i, depth, result):
        tagLen = isValidBareTag(view.subview(i + 2))
        if tagLen is None:
            return None
        return self._openPairedTag(view, i, tagLen, I, depth, result)

    def _parseP(self, view, i, depth, result):
        tagLen = isValidBareTag(view.subview(i + 2))
        if tagLen is None:
            return None
        return self._openPairedTag(view, i, tagLen, P, depth, result)

    def _parseSize(self, view, i, depth, result):
        match = isValidEqualSignTag(view.subview(i + 2), b"ize")
        if match is None:
            return None
        tagLen, value = match
        size = u8str2int(value)
        if size is None:
            return None
        return self._openPairedTag(view, i, tagLen, Size, depth, result, size)

    def _parseUser(self, view, i, depth, result):
        match = isValidEqualSignTag(view.subview(i + 2), b"ser")
        if match is None:
            return None
        tagLen, id = match
        return self._openPairedTag(view, i, tagLen, User, depth, result, id.decode("utf-8"))

    def _countNodes(self, nodes) -> int:
        count = 0
        for node in nodes:
            count += 1
            if isinstance(node, PairedTagBase):
                count += self._countNodes(node.children)
        return count


# Convenience functions for quick parsing


def parsePlText(pltext: PlTextInput, **options) -> List[PlTextNode]:
    """
    Parse pl-text into a list of AST nodes.

    Args:
        pltext: Text, or its UTF-8 bytes
        **options: Parser options

    Returns:
        Nodes in document order
    """
    parser = PlTextParser(options)
    return parser.parse(pltext)


def pltxt2html(
    pltext: PlTextInput,
    host: str = DEFAULT_HOST,
    backend: Union[BackendText, str] = BackendText.ADVANCED,
    **options,
) -> str:
    """
    Convert pl-text to HTML.

    Args:
        pltext: Text, or its UTF-8 bytes
        host: Host used for experiment and discussion links
        backend: Renderer flavour
        **options: Parser options

    Returns:
        HTML string
    """
    options["host"] = host
    options["backend"] = backend
    parser = PlTextParser(options)
    return parser.parseToHtml(pltext)


def pltxt2advancedHtml(pltext: PlTextInput, host: str = DEFAULT_HOST, **options) -> str:
    """Convert pl-text to Physics-Lab flavoured HTML."""
    return pltxt2html(pltext, host, BackendText.ADVANCED, **options)


def pltxt2commonHtml(pltext: PlTextInput, **options) -> str:
    """Convert pl-text to plain HTML, Physics-Lab specific tags keep only their text."""
    return pltxt2html(pltext, DEFAULT_HOST, BackendText.BASIC, **options)
