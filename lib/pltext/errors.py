"""
Exceptions raised by the pl-text library.

Malformed markup is never an error: unrecognised tags fall back to literal
text. The exceptions below cover input that is not UTF-8 at all, misuse of
the node owner, and internal invariant violations caught in debug mode.
"""

from typing import Optional


class PlTextError(Exception):
    """Base class for all pl-text library errors."""


class InvalidUtf8Error(PlTextError, ValueError):
    """Input is not well-formed UTF-8."""

    def __init__(self, message: str, position: Optional[int] = None):
        """
        Initialize the error.

        Args:
            message: Error message
            position: Byte offset of the first invalid byte, if known
        """
        self.message = message
        self.position = position

        location = ""
        if position is not None:
            location = f" at byte {position}"

        super().__init__(f"{message}{location}")


class PlTextAssertionError(PlTextError, AssertionError):
    """Internal invariant violated (raised only when debug checks are enabled)."""


class IndexOutOfBoundError(PlTextAssertionError, IndexError):
    """Checked byte access went past the end of the view."""


class HeapGuardError(PlTextError, RuntimeError):
    """Unsupported operation on a HeapGuard."""
