"""
Lexical helpers for the pl-text parser

This module provides byte-level scanning primitives over a UTF-8 input:
- ``ByteView``: a zero-copy window with checked and unchecked access
- ``isPrefixMatch``: case-insensitive match of an ASCII tag name
- ``isValidBareTag``: ``name *>``
- ``isValidEqualSignTag``: ``name=value>`` and ``name=value *>``
- ``tryParseSelfClosingTag``: ``name *>`` and ``name */>``
- ``u8str2int``: decimal digits to integer

Every scanner takes the window that starts right after ``<`` plus the tag's
first letter, so the names passed in omit that letter (``"olor"`` for
``<color=``). Lengths returned are relative to that window and point just
past the closing ``>``.
"""

from typing import Optional, Tuple

from .errors import IndexOutOfBoundError

# ASCII distance between an upper and a lower case letter ('a' - 'A')
CASE_BIT = 0x20

LESS_THAN = ord("<")
GREATER_THAN = ord(">")
SPACE = ord(" ")
SLASH = ord("/")
EQUAL_SIGN = ord("=")


class ByteView:
    """
    Read-only window over a bytes object.

    ``index`` is bounds-checked unless ``ndebug`` is set; ``indexUnchecked``
    never checks and must only be used once the caller has established that
    the index is in range.
    """

    __slots__ = ("_data", "_start", "_ndebug")

    def __init__(self, data: bytes, start: int = 0, ndebug: bool = False):
        self._data = data
        self._start = start
        self._ndebug = ndebug

    @property
    def ndebug(self) -> bool:
        return self._ndebug

    @property
    def start(self) -> int:
        """Offset of this window inside the full input."""
        return self._start

    def __len__(self) -> int:
        return len(self._data) - self._start

    def index(self, i: int) -> int:
        """
        Get the byte at ``i``.

        Raises:
            IndexOutOfBoundError: If ``i`` is outside the view and debug checks are on
        """
        if not self._ndebug and not 0 <= i < len(self._data) - self._start:
            raise IndexOutOfBoundError(f"Index of parser out of bound: {i} (view size {len(self)})")
        return self._data[self._start + i]

    def indexUnchecked(self, i: int) -> int:
        return self._data[self._start + i]

    def subview(self, i: int) -> "ByteView":
        """
        Get the window starting at ``i``. ``i`` may equal ``len(self)``.

        Raises:
            IndexOutOfBoundError: If ``i`` is past the end and debug checks are on
        """
        if not self._ndebug and not 0 <= i <= len(self._data) - self._start:
            raise IndexOutOfBoundError(f"Subview of parser out of bound: {i} (view size {len(self)})")
        return ByteView(self._data, self._start + i, self._ndebug)

    def tobytes(self) -> bytes:
        return self._data[self._start :]

    def __repr__(self) -> str:
        return f"ByteView(start={self._start}, size={len(self)})"


def isPrefixMatch(prefix: bytes, view: ByteView) -> bool:
    """
    Check whether ``prefix`` starts ``view``, ignoring ASCII letter case.

    The view must be strictly longer than the prefix: every caller needs at
    least one more byte (``>`` or a value) after the name.

    Args:
        prefix: Lower-case ASCII literal
        view: Window to check

    Returns:
        True if the prefix matches
    """
    if len(prefix) >= len(view):
        return False

    for i, expect in enumerate(prefix):
        actual = view.index(i)
        if 0x61 <= expect <= 0x7A:
            # expect is lower case: fold the input byte instead of testing both cases
            if expect != (actual | CASE_BIT):
                return False
        elif expect != actual:
            return False
    return True


def isValidBareTag(view: ByteView, tagName: bytes = b"") -> Optional[int]:
    """
    Match ``tagName`` followed by optional spaces and ``>`` (regex ``^tagName *>``).

    Args:
        view: Window starting where the tag name is expected
        tagName: Lower-case name, without the letter already dispatched on

    Returns:
        Length up to and including ``>``, or None if the tag does not match
    """
    if not isPrefixMatch(tagName, view):
        return None

    for i in range(len(tagName), len(view)):
        forwardChr = view.index(i)
        if forwardChr == GREATER_THAN:
            return i + 1
        elif forwardChr != SPACE:
            return None
    return None


def isValidEqualSignTag(view: ByteView, tagName: bytes) -> Optional[Tuple[int, bytes]]:
    """
    Match ``tagName=VALUE>``, allowing one run of spaces between VALUE and ``>``.

    VALUE is every byte up to the first space or ``>``; it may be empty.

    Args:
        view: Window starting where the tag name is expected
        tagName: Lower-case name without ``=``

    Returns:
        (length up to and including ``>``, VALUE), or None if unterminated or malformed
    """
    if not isPrefixMatch(tagName + b"=", view):
        return None

    viewSize = len(view)
    value = bytearray()
    forwardIndex = len(tagName) + 1
    while True:
        forwardChr = view.index(forwardIndex)
        if forwardChr == GREATER_THAN:
            return forwardIndex + 1, bytes(value)
        elif forwardChr == SPACE:
            while True:
                if forwardIndex + 1 >= viewSize:
                    return None

                nextChr = view.index(forwardIndex + 1)
                if nextChr == SPACE:
                    forwardIndex += 1
                elif nextChr == GREATER_THAN:
                    return forwardIndex + 2, bytes(value)
                else:
                    return None
        else:
            value.append(forwardChr)

        if forwardIndex + 1 >= viewSize:
            return None
        forwardIndex += 1


def tryParseSelfClosingTag(view: ByteView, tagName: bytes) -> int:
    """
    Match ``tagName *>`` or ``tagName */>``.

    Args:
        view: Window starting where the tag name is expected
        tagName: Lower-case name, without the letter already dispatched on

    Returns:
        Length up to and including ``>``, or 0 if the tag does not match
    """
    if not isPrefixMatch(tagName, view):
        return 0

    viewSize = len(view)
    for forwardIndex in range(len(tagName), viewSize):
        forwardChr = view.index(forwardIndex)
        if forwardChr == GREATER_THAN:
            return forwardIndex + 1
        elif forwardChr == SLASH and forwardIndex + 1 < viewSize and view.index(forwardIndex + 1) == GREATER_THAN:
            return forwardIndex + 2
        elif forwardChr != SPACE:
            return 0
    return 0


def u8str2int(value: bytes) -> Optional[int]:
    """
    Convert ASCII decimal digits to an integer.

    Signs, spaces and any other byte are rejected. Overflow is not a concern
    for Python integers.

    Returns:
        The integer, or None for empty or non-decimal input
    """
    if not value:
        return None

    result = 0
    for c in value:
        if c < 0x30 or c > 0x39:
            return None
        result = result * 10 + (c - 0x30)
    return result


def utf8SequenceLength(leadByte: int) -> int:
    """
    Length of the UTF-8 sequence introduced by ``leadByte``.

    Returns:
        1 to 4, or 0 if ``leadByte`` cannot start a sequence
    """
    if leadByte & 0b1000_0000 == 0:
        return 1
    elif leadByte & 0b1110_0000 == 0b1100_0000:
        return 2
    elif leadByte & 0b1111_0000 == 0b1110_0000:
        return 3
    elif leadByte & 0b1111_1000 == 0b1111_0000:
        return 4
    return 0
