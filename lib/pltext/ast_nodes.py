"""
AST Node Classes for the pl-text parser

This module defines the node classes that make up a parsed pl-text document.
A document is an ordered list of nodes; leaf nodes stand for one literal
character, one UTF-8 code unit or one void element, container nodes stand
for a paired tag and own the nodes between its opening and closing tags.

Nodes are values: their kind, payload and children are fixed at
construction time and exposed through read-only properties.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict, Iterable, Tuple


class NodeType(Enum):
    """Enumeration of all AST node kinds."""

    BASE = "base"
    # Leaves
    LINE_BREAK = "line_break"
    SPACE = "space"
    LESS_THAN = "less_than"
    GREATER_THAN = "greater_than"
    AMPERSAND = "ampersand"
    SINGLE_QUOTE = "single_quote"
    DOUBLE_QUOTE = "double_quote"
    U8CHAR = "u8char"
    HTML_BR = "html_br"
    HTML_HR = "html_hr"
    # Physics-Lab containers
    PL_A = "pl_a"
    PL_B = "pl_b"
    PL_I = "pl_i"
    PL_COLOR = "pl_color"
    PL_DISCUSSION = "pl_discussion"
    PL_EXPERIMENT = "pl_experiment"
    PL_USER = "pl_user"
    PL_SIZE = "pl_size"
    # HTML containers
    HTML_P = "html_p"
    HTML_DEL = "html_del"
    HTML_H1 = "html_h1"
    HTML_H2 = "html_h2"
    HTML_H3 = "html_h3"
    HTML_H4 = "html_h4"
    HTML_H5 = "html_h5"
    HTML_H6 = "html_h6"


class PlTextNode(ABC):
    """Base class for all pl-text AST nodes."""

    __slots__ = ("_nodeType",)

    def __init__(self, nodeType: NodeType):
        self._nodeType = nodeType

    @property
    def nodeType(self) -> NodeType:
        return self._nodeType

    @property
    def isContainer(self) -> bool:
        return False

    def dispose(self) -> None:
        """Release resources held by this node. Leaves hold none."""
        pass

    @abstractmethod
    def toDict(self) -> Dict[str, Any]:
        """Convert node to dictionary representation."""
        pass

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PlTextNode):
            return NotImplemented
        return type(self) is type(other) and self.toDict() == other.toDict()

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(type={self._nodeType.value})"


class _LeafNode(PlTextNode):
    """Leaf node without payload."""

    __slots__ = ()
    NODE_TYPE: NodeType = NodeType.BASE

    def __init__(self):
        super().__init__(self.NODE_TYPE)

    def toDict(self) -> Dict[str, Any]:
        return {"type": self._nodeType.value}


class LineBreak(_LeafNode):
    """Represents ``\\n``."""

    __slots__ = ()
    NODE_TYPE = NodeType.LINE_BREAK


class Space(_LeafNode):
    """Represents a literal space."""

    __slots__ = ()
    NODE_TYPE = NodeType.SPACE


class LessThan(_LeafNode):
    """Represents ``<``, including every ``<`` that did not start a recognised tag."""

    __slots__ = ()
    NODE_TYPE = NodeType.LESS_THAN


class GreaterThan(_LeafNode):
    """Represents ``>``."""

    __slots__ = ()
    NODE_TYPE = NodeType.GREATER_THAN


class Ampersand(_LeafNode):
    """Represents ``&``."""

    __slots__ = ()
    NODE_TYPE = NodeType.AMPERSAND


class SingleQuotationMark(_LeafNode):
    """Represents ``'``."""

    __slots__ = ()
    NODE_TYPE = NodeType.SINGLE_QUOTE


class DoubleQuotationMark(_LeafNode):
    """Represents ``"``."""

    __slots__ = ()
    NODE_TYPE = NodeType.DOUBLE_QUOTE


class Br(_LeafNode):
    """Represents a ``<br>`` tag."""

    __slots__ = ()
    NODE_TYPE = NodeType.HTML_BR


class Hr(_LeafNode):
    """Represents a ``<hr>`` tag."""

    __slots__ = ()
    NODE_TYPE = NodeType.HTML_HR


class U8Char(PlTextNode):
    """
    One UTF-8 code unit of ordinary text.

    A multi-byte character is stored as one U8Char per byte, in order.
    """

    __slots__ = ("_byte",)

    def __init__(self, byte: int):
        super().__init__(NodeType.U8CHAR)
        if not 0 <= byte <= 0xFF:
            raise ValueError(f"UTF-8 code unit must be 0-255, got {byte}")
        self._byte = byte

    @property
    def byte(self) -> int:
        return self._byte

    def toDict(self) -> Dict[str, Any]:
        return {"type": self._nodeType.value, "byte": self._byte}

    def __repr__(self) -> str:
        return f"U8Char(0x{self._byte:02x})"


class PairedTagBase(PlTextNode):
    """Container node for a paired tag; owns its children in document order."""

    __slots__ = ("_children",)
    NODE_TYPE: NodeType = NodeType.BASE

    def __init__(self, children: Iterable[PlTextNode]):
        super().__init__(self.NODE_TYPE)
        self._children: Tuple[PlTextNode, ...] = tuple(children)

    @property
    def children(self) -> Tuple[PlTextNode, ...]:
        return self._children

    @property
    def isContainer(self) -> bool:
        return True

    def dispose(self) -> None:
        for child in self._children:
            child.dispose()
        self._children = ()

    def toDict(self) -> Dict[str, Any]:
        return {
            "type": self._nodeType.value,
            "children": [child.toDict() for child in self._children],
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(children={len(self._children)})"


class A(PairedTagBase):
    """Physics-Lab ``<a>`` (highlighted text, not an HTML link)."""

    __slots__ = ()
    NODE_TYPE = NodeType.PL_A


class B(PairedTagBase):
    """Bold text, ``<b>``."""

    __slots__ = ()
    NODE_TYPE = NodeType.PL_B


class I(PairedTagBase):  # noqa: E742
    """Italic text, ``<i>``."""

    __slots__ = ()
    NODE_TYPE = NodeType.PL_I


class Del(PairedTagBase):
    """Struck-through text, ``<del>``."""

    __slots__ = ()
    NODE_TYPE = NodeType.HTML_DEL


class P(PairedTagBase):
    """Paragraph, ``<p>``."""

    __slots__ = ()
    NODE_TYPE = NodeType.HTML_P


class H1(PairedTagBase):
    __slots__ = ()
    NODE_TYPE = NodeType.HTML_H1


class H2(PairedTagBase):
    __slots__ = ()
    NODE_TYPE = NodeType.HTML_H2


class H3(PairedTagBase):
    __slots__ = ()
    NODE_TYPE = NodeType.HTML_H3


class H4(PairedTagBase):
    __slots__ = ()
    NODE_TYPE = NodeType.HTML_H4


class H5(PairedTagBase):
    __slots__ = ()
    NODE_TYPE = NodeType.HTML_H5


class H6(PairedTagBase):
    __slots__ = ()
    NODE_TYPE = NodeType.HTML_H6


class Color(PairedTagBase):
    """``<color=VALUE>``; the value is kept verbatim."""

    __slots__ = ("_color",)
    NODE_TYPE = NodeType.PL_COLOR

    def __init__(self, children: Iterable[PlTextNode], color: str):
        super().__init__(children)
        self._color = color

    @property
    def color(self) -> str:
        return self._color

    def toDict(self) -> Dict[str, Any]:
        result = super().toDict()
        result["color"] = self._color
        return result


class _IdentifiedTag(PairedTagBase):
    """Container carrying an identifier string (``<user=ID>`` etc.)."""

    __slots__ = ("_id",)

    def __init__(self, children: Iterable[PlTextNode], id: str):
        super().__init__(children)
        self._id = id

    @property
    def id(self) -> str:
        return self._id

    def toDict(self) -> Dict[str, Any]:
        result = super().toDict()
        result["id"] = self._id
        return result


class Discussion(_IdentifiedTag):
    """Link to a Physics-Lab discussion, ``<discussion=ID>``."""

    __slots__ = ()
    NODE_TYPE = NodeType.PL_DISCUSSION


class Experiment(_IdentifiedTag):
    """Link to a Physics-Lab experiment, ``<experiment=ID>``."""

    __slots__ = ()
    NODE_TYPE = NodeType.PL_EXPERIMENT


class User(_IdentifiedTag):
    """Mention of a Physics-Lab user, ``<user=ID>``."""

    __slots__ = ()
    NODE_TYPE = NodeType.PL_USER


class Size(PairedTagBase):
    """``<size=N>`` font size, N is a non-negative decimal integer."""

    __slots__ = ("_size",)
    NODE_TYPE = NodeType.PL_SIZE

    def __init__(self, children: Iterable[PlTextNode], size: int):
        super().__init__(children)
        if size < 0:
            raise ValueError(f"Size must be non-negative, got {size}")
        self._size = size

    @property
    def size(self) -> int:
        return self._size

    def toDict(self) -> Dict[str, Any]:
        result = super().toDict()
        result["size"] = self._size
        return result


HEADER_CLASSES = (H1, H2, H3, H4, H5, H6)
