"""Type definitions for the pl-text library."""

from enum import Enum
from typing import NotRequired, TypedDict, Union


class BackendText(Enum):
    """HTML flavour produced by the renderer."""

    # Plain HTML, Physics-Lab specific tags are reduced to their text
    BASIC = "basic"
    # Physics-Lab flavoured HTML (colors, sizes, user mentions, internal links)
    ADVANCED = "advanced"

    @classmethod
    def fromValue(cls, value: Union["BackendText", str]) -> "BackendText":
        """
        Get backend by enum member or its string value.

        Raises:
            ValueError: If the string is not a known backend
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise ValueError(f"Unknown backend '{value}', expected one of: {[b.value for b in cls]}") from None


class PlTextParserConfig(TypedDict):
    """Options accepted by PlTextParser.

    Attributes:
        maxNestingDepth: Deepest allowed container nesting, deeper opening tags become text
        ndebug: Disable internal bounds checks
        host: Host used for experiment/discussion links
        backend: Renderer flavour
    """

    maxNestingDepth: NotRequired[int]
    ndebug: NotRequired[bool]
    host: NotRequired[str]
    backend: NotRequired[Union[BackendText, str]]
